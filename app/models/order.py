from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from core.database import Base
import enum

# Estados que ofrece el panel de administración.
# El ledger acepta cualquier texto; esta lista solo alimenta los selects del admin.
class OrderStatus(str, enum.Enum):
    NEW = "New"                  # Recibida por WhatsApp
    PROCESSING = "Processing"    # En preparación
    COMPLETED = "Completed"      # Entregada

class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Datos del cliente (checkout por WhatsApp, sin cuenta)
    customer_whatsapp = Column(String(50), nullable=False, index=True)
    customer_name = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)

    # Estado
    order_status = Column(String(50), nullable=False, default=OrderStatus.NEW.value, index=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), server_default=func.now())

    # Relationships
    order_items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id"
    )


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    # Referencia débil: queda en NULL si el producto se elimina
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True)

    # Snapshot del producto al momento de la compra
    product_name = Column(String(255), nullable=False)

    quantity = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)  # Precio unitario al momento de la compra

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    order = relationship("Order", back_populates="order_items")
    product = relationship("Product", back_populates="order_items")
