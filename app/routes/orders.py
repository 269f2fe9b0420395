"""
Endpoints de órdenes.

El checkout del storefront (POST) es público: registra la orden, descuenta stock
y devuelve el enlace de WhatsApp con el pedido. El resto requiere sesión de administrador.
"""
from fastapi import APIRouter, BackgroundTasks, Depends, Query, Response
from sqlalchemy.orm import Session
from typing import Optional

from core.database import get_db
from core.dependencies import get_current_identity
from core.email_service import email_service
from core import order_service
from core.serializers import format_order, format_order_item
from core.site_settings import get_or_create_settings
from core.whatsapp import build_order_message, build_whatsapp_url
from schemas.auth import Identity
from schemas.orders import OrderCreate, OrderStatusUpdate

router = APIRouter(
    prefix="/api/orders",
    tags=["orders"]
)


# ==================== CHECKOUT (PÚBLICO) ====================

@router.post("", status_code=201)
async def create_order(
    order_data: OrderCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db)
):
    """
    Crear orden desde el carrito local del cliente.

    - Valida que todos los productos existan antes de escribir
    - Descuenta el stock de cada producto (sin stock suficiente se rechaza toda la orden)
    - Devuelve la orden con `whatsapp_url` para enviar el pedido a la tienda
    """
    order = order_service.create_order(db, order_data)
    site_settings = get_or_create_settings(db)

    if email_service.enabled and site_settings.site_email:
        background_tasks.add_task(
            email_service.send_new_order_notification,
            to_email=site_settings.site_email,
            site_name=site_settings.site_name,
            order_id=order.id,
            summary=build_order_message(order, site_settings.currency),
            customer_whatsapp=order.customer_whatsapp
        )

    data = format_order(order)
    data["whatsapp_url"] = build_whatsapp_url(order, site_settings)

    return {
        "success": True,
        "status_code": 201,
        "message": "Orden creada exitosamente",
        "data": data
    }


# ==================== ADMIN ====================

@router.get("")
async def list_orders(
    status: Optional[str] = Query(None, description="Filtrar por estado"),
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity)
):
    """
    Listar órdenes (más recientes primero).
    """
    orders = order_service.list_orders(db, status=status)

    return {
        "success": True,
        "status_code": 200,
        "message": "Órdenes obtenidas exitosamente",
        "data": [format_order(o) for o in orders]
    }


@router.get("/{order_id}")
async def get_order(
    order_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity)
):
    order = order_service.get_order_or_404(db, order_id)

    return {
        "success": True,
        "status_code": 200,
        "message": "Orden obtenida exitosamente",
        "data": format_order(order)
    }


@router.get("/{order_id}/items")
async def list_order_items(
    order_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity)
):
    order = order_service.get_order_or_404(db, order_id)

    return {
        "success": True,
        "status_code": 200,
        "message": "Items de la orden obtenidos exitosamente",
        "data": [format_order_item(i) for i in order.order_items]
    }


@router.patch("/{order_id}/status")
async def update_order_status(
    order_id: int,
    status_data: OrderStatusUpdate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity)
):
    """
    Cambiar el estado de una orden (New, Processing, Completed u otro texto).
    """
    order = order_service.update_order_status(db, order_id, status_data.status)

    return {
        "success": True,
        "status_code": 200,
        "message": f"Estado de la orden actualizado a '{order.order_status}'",
        "data": format_order(order)
    }


@router.delete("/{order_id}", status_code=204)
async def delete_order(
    order_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity)
):
    """
    Eliminar una orden y sus items. El stock descontado no se repone.
    """
    order_service.delete_order(db, order_id)
    return Response(status_code=204)
