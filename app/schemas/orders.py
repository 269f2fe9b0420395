"""
Schemas para órdenes (checkout por WhatsApp).
"""
from pydantic import BaseModel, Field, validator
from typing import Optional, List


# ==================== ORDER ITEM SCHEMAS ====================

class OrderItemCreate(BaseModel):
    """Item enviado desde el carrito del cliente"""
    product_id: int
    quantity: int = Field(..., ge=1, description="Cantidad del producto (mínimo 1)")
    price: float = Field(..., ge=0, description="Precio unitario mostrado al cliente")


# ==================== ORDER SCHEMAS ====================

class OrderCreate(BaseModel):
    """Crear orden desde el carrito local del storefront"""
    customer_whatsapp: str = Field(..., min_length=1, max_length=50, description="WhatsApp del cliente")
    customer_name: Optional[str] = Field(None, max_length=255, description="Nombre del cliente")
    notes: Optional[str] = Field(None, max_length=500, description="Notas del cliente")
    items: List[OrderItemCreate] = Field(..., min_length=1, description="Productos de la orden")

    @validator('customer_whatsapp')
    def validate_whatsapp(cls, v):
        """No aceptar números vacíos"""
        if not v.strip():
            raise ValueError('El número de WhatsApp es requerido')
        return v.strip()


# ==================== ADMIN SCHEMAS ====================

class OrderStatusUpdate(BaseModel):
    """
    Actualizar estado de orden (admin).
    Cualquier texto se acepta; el panel limita las opciones a New/Processing/Completed.
    """
    status: str = Field(..., description="Nuevo estado de la orden")
