from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import Optional
import logging

from core.database import get_db, commit_or_rollback
from core.dependencies import get_current_identity
from core.exceptions import AppError, NotFoundError, UpstreamError, ValidationError
from core.serializers import format_product, format_stock_update
from core.storage import storage_service, is_data_url
from core.tag_service import inherit_category_tags, replace_product_tags, get_tags_or_404
from models.order import OrderItem
from models.products import Category, Product, ProductTag, StockUpdate
from schemas.auth import Identity
from schemas.products import ProductCreate, ProductUpdate

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/products",
    tags=["products"]
)

REQUIRED_FIELDS = ("name", "price", "stock_quantity")


def get_product_or_404(db: Session, product_id: int) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise NotFoundError("Producto no encontrado", error="PRODUCT_NOT_FOUND")
    return product


def ensure_category_exists(db: Session, category_id: Optional[int]) -> None:
    """La categoría se valida al escribir; no se permiten referencias colgantes"""
    if category_id is None:
        return
    if not db.query(Category.id).filter(Category.id == category_id).first():
        raise NotFoundError("Categoría no encontrada", error="CATEGORY_NOT_FOUND")


# ==================== LECTURA (PÚBLICA) ====================

@router.get("")
async def list_products(
    category_id: Optional[int] = Query(None, description="Filtrar por categoría"),
    search: Optional[str] = Query(None, description="Buscar en nombre o descripción"),
    db: Session = Depends(get_db)
):
    """
    Listar productos con su categoría y etiquetas.

    - **category_id**: Solo productos de esta categoría
    - **search**: Buscar en nombre o descripción
    """
    query = db.query(Product)

    if category_id is not None:
        query = query.filter(Product.category_id == category_id)

    if search:
        search_term = f"%{search}%"
        query = query.filter(
            or_(
                Product.name.ilike(search_term),
                Product.description.ilike(search_term)
            )
        )

    products = query.order_by(Product.created_at.desc(), Product.id.desc()).all()

    return {
        "success": True,
        "status_code": 200,
        "message": "Productos obtenidos exitosamente",
        "data": [format_product(p) for p in products]
    }


@router.get("/{product_id}")
async def get_product(product_id: int, db: Session = Depends(get_db)):
    """
    Obtener un producto por su ID.
    """
    product = get_product_or_404(db, product_id)

    return {
        "success": True,
        "status_code": 200,
        "message": "Producto obtenido exitosamente",
        "data": format_product(product)
    }


@router.get("/{product_id}/stock-updates")
async def list_stock_updates(
    product_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity)
):
    """
    Historial de movimientos de stock del producto (más recientes primero).
    """
    product = get_product_or_404(db, product_id)

    updates = db.query(StockUpdate).filter(
        StockUpdate.product_id == product.id
    ).order_by(StockUpdate.created_at.desc(), StockUpdate.id.desc()).all()

    return {
        "success": True,
        "status_code": 200,
        "message": "Movimientos de stock obtenidos exitosamente",
        "data": [format_stock_update(u) for u in updates]
    }


# ==================== ESCRITURA (ADMIN) ====================

@router.post("", status_code=201)
async def create_product(
    product_data: ProductCreate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity)
):
    """
    Crear un producto.

    Las etiquetas del producto quedan como la unión de `tags` y las
    etiquetas de su categoría. `image_url` puede ser una imagen embebida
    (data URL); se optimiza y se guarda la URL pública.
    """
    ensure_category_exists(db, product_data.category_id)
    tag_ids = product_data.tags or []
    get_tags_or_404(db, tag_ids)

    image_url = product_data.image_url
    if is_data_url(image_url):
        image_url = await storage_service.save_data_url(image_url)

    product = Product(
        name=product_data.name,
        description=product_data.description,
        price=product_data.price,
        stock_quantity=product_data.stock_quantity,
        category_id=product_data.category_id,
        image_url=image_url
    )

    try:
        db.add(product)
        db.flush()
        replace_product_tags(db, product, tag_ids)
        commit_or_rollback(db)
    except (AppError, SQLAlchemyError) as e:
        db.rollback()
        if image_url != product_data.image_url:
            await storage_service.delete_file(image_url)
        if isinstance(e, AppError):
            raise
        logger.error(f"Error al crear producto: {str(e)}")
        raise UpstreamError(f"Error al guardar los cambios: {str(e)}", error="DATABASE_ERROR")

    db.refresh(product)
    logger.info(f"Producto #{product.id} creado por {identity.email}")

    return {
        "success": True,
        "status_code": 201,
        "message": "Producto creado exitosamente",
        "data": format_product(product)
    }


@router.patch("/{product_id}")
async def update_product(
    product_id: int,
    product_data: ProductUpdate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity)
):
    """
    Actualizar un producto (solo los campos enviados).

    - Con `tags`: se reemplazan las etiquetas explícitas y se vuelven a heredar las de la categoría.
    - Sin `tags` pero con nueva `category_id`: se agregan las etiquetas de la nueva categoría.
    - Un cambio de stock queda registrado como movimiento "adjustment".
    """
    product = get_product_or_404(db, product_id)

    update_data = product_data.model_dump(exclude_unset=True)
    tag_ids = update_data.pop("tags", None)

    # Campos obligatorios: null no es un valor válido
    for field in REQUIRED_FIELDS:
        if field in update_data and update_data[field] is None:
            raise ValidationError(
                f"El campo '{field}' no puede ser nulo",
                details=[{"field": field, "message": "No puede ser nulo"}]
            )

    if "category_id" in update_data:
        ensure_category_exists(db, update_data["category_id"])
    if tag_ids is not None:
        get_tags_or_404(db, tag_ids)

    new_image = None
    old_image = product.image_url
    if is_data_url(update_data.get("image_url")):
        new_image = await storage_service.save_data_url(update_data["image_url"])
        update_data["image_url"] = new_image

    category_changed = "category_id" in update_data and update_data["category_id"] != product.category_id
    stock_change = 0
    if update_data.get("stock_quantity") is not None:
        stock_change = update_data["stock_quantity"] - product.stock_quantity

    try:
        for field, value in update_data.items():
            setattr(product, field, value)

        if stock_change:
            db.add(StockUpdate(
                product_id=product.id,
                change_amount=stock_change,
                reason="adjustment"
            ))

        db.flush()

        if tag_ids is not None:
            replace_product_tags(db, product, tag_ids)
        elif category_changed:
            inherit_category_tags(db, product)

        commit_or_rollback(db)
    except (AppError, SQLAlchemyError) as e:
        db.rollback()
        if new_image:
            await storage_service.delete_file(new_image)
        if isinstance(e, AppError):
            raise
        logger.error(f"Error al actualizar producto #{product_id}: {str(e)}")
        raise UpstreamError(f"Error al guardar los cambios: {str(e)}", error="DATABASE_ERROR")

    # La imagen anterior solo se borra cuando el cambio ya quedó guardado
    if "image_url" in update_data and old_image and old_image != product.image_url:
        await storage_service.delete_file(old_image)

    db.refresh(product)

    return {
        "success": True,
        "status_code": 200,
        "message": "Producto actualizado exitosamente",
        "data": format_product(product)
    }


@router.delete("/{product_id}", status_code=204)
async def delete_product(
    product_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity)
):
    """
    Eliminar un producto junto con sus etiquetas y su historial de stock.
    Las órdenes existentes conservan el nombre y precio del producto en sus items.
    """
    product = get_product_or_404(db, product_id)
    image_url = product.image_url

    db.query(ProductTag).filter(ProductTag.product_id == product.id).delete(synchronize_session=False)
    db.query(OrderItem).filter(OrderItem.product_id == product.id).update(
        {OrderItem.product_id: None},
        synchronize_session=False
    )
    db.query(StockUpdate).filter(StockUpdate.product_id == product.id).delete(synchronize_session=False)
    db.delete(product)
    commit_or_rollback(db)

    await storage_service.delete_file(image_url)
    logger.info(f"Producto #{product_id} eliminado por {identity.email}")

    return Response(status_code=204)
