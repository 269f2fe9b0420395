"""
Ledger de órdenes: registra la orden, sus items y descuenta el stock.

Toda la operación corre en una sola transacción:
- los productos se validan antes de escribir nada
- el descuento de stock es un UPDATE condicional (stock >= cantidad), así dos
  órdenes concurrentes sobre el mismo producto no pierden actualizaciones
- cualquier falla hace rollback de la orden, los items y el stock
"""
import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.exceptions import AppError, NotFoundError, UpstreamError, ValidationError
from models.order import Order, OrderItem, OrderStatus
from models.products import Product, StockUpdate
from schemas.orders import OrderCreate

logger = logging.getLogger(__name__)


def get_order_or_404(db: Session, order_id: int) -> Order:
    order = db.query(Order).filter(Order.id == order_id).first()
    if not order:
        raise NotFoundError("Orden no encontrada", error="ORDER_NOT_FOUND")
    return order


def list_orders(db: Session, status: Optional[str] = None) -> List[Order]:
    """Órdenes más recientes primero, opcionalmente filtradas por estado"""
    query = db.query(Order)
    if status:
        query = query.filter(Order.order_status == status)
    return query.order_by(Order.created_at.desc(), Order.id.desc()).all()


def decrement_stock(db: Session, product_id: int, quantity: int, order_id: Optional[int] = None) -> None:
    """
    Descontar stock de forma atómica y registrar el movimiento.

    Raises:
        ValidationError: si no hay stock suficiente
    """
    updated = db.query(Product).filter(
        Product.id == product_id,
        Product.stock_quantity >= quantity
    ).update(
        {Product.stock_quantity: Product.stock_quantity - quantity},
        synchronize_session=False
    )

    if not updated:
        raise ValidationError(
            "Stock insuficiente",
            error="INSUFFICIENT_STOCK",
            details={"product_id": product_id, "requested": quantity}
        )

    db.add(StockUpdate(
        product_id=product_id,
        change_amount=-quantity,
        reason="order",
        order_id=order_id
    ))


def create_order(db: Session, order_data: OrderCreate) -> Order:
    """
    Crear una orden con estado "New", sus items y el descuento de stock.

    Raises:
        NotFoundError: algún producto no existe (no se escribe nada)
        ValidationError: stock insuficiente (se revierte todo)
        UpstreamError: falla de la base de datos
    """
    product_ids = {item.product_id for item in order_data.items}
    products = {
        p.id: p for p in db.query(Product).filter(Product.id.in_(product_ids)).all()
    }

    missing = product_ids - set(products)
    if missing:
        raise NotFoundError(
            "Producto no encontrado",
            error="PRODUCT_NOT_FOUND",
            details={"product_ids": sorted(missing)}
        )

    try:
        order = Order(
            customer_whatsapp=order_data.customer_whatsapp,
            customer_name=order_data.customer_name,
            notes=order_data.notes,
            order_status=OrderStatus.NEW.value
        )
        db.add(order)
        db.flush()

        for item in order_data.items:
            product = products[item.product_id]
            db.add(OrderItem(
                order_id=order.id,
                product_id=product.id,
                product_name=product.name,
                quantity=item.quantity,
                price=item.price
            ))
            decrement_stock(db, product.id, item.quantity, order_id=order.id)

        db.commit()
    except AppError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error creando orden para {order_data.customer_whatsapp}: {str(e)}")
        raise UpstreamError(f"Error al registrar la orden: {str(e)}", error="DATABASE_ERROR")

    db.refresh(order)
    logger.info(
        f"Orden #{order.id} creada ({len(order_data.items)} item(s)) "
        f"para {order.customer_whatsapp}"
    )
    return order


def update_order_status(db: Session, order_id: int, status: str) -> Order:
    """
    Cambiar el estado de la orden. Se acepta y guarda cualquier texto.
    """
    order = get_order_or_404(db, order_id)
    previous = order.order_status
    order.order_status = status

    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise UpstreamError(f"Error al actualizar la orden: {str(e)}", error="DATABASE_ERROR")

    db.refresh(order)
    logger.info(f"Orden #{order.id}: {previous} -> {status}")
    return order


def delete_order(db: Session, order_id: int) -> None:
    """
    Eliminar la orden y sus items en una sola transacción.
    El stock descontado no se repone.
    """
    order = get_order_or_404(db, order_id)

    try:
        db.query(StockUpdate).filter(StockUpdate.order_id == order.id).update(
            {StockUpdate.order_id: None},
            synchronize_session=False
        )
        db.query(OrderItem).filter(OrderItem.order_id == order.id).delete(synchronize_session=False)
        db.delete(order)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise UpstreamError(f"Error al eliminar la orden: {str(e)}", error="DATABASE_ERROR")

    logger.info(f"Orden #{order_id} eliminada")
