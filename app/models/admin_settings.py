from sqlalchemy import Column, String, DateTime, Integer
from datetime import datetime
from core.database import Base


class SiteSettings(Base):
    """
    Configuración general de la tienda.
    Solo debe existir UN registro en esta tabla; nunca se elimina.
    """
    __tablename__ = "settings"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    site_name = Column(String(255), default="Mi Tienda", nullable=False)
    site_email = Column(String(255), default="", nullable=False)
    currency = Column(String(10), default="USD", nullable=False)
    contact_number = Column(String(50), default="", nullable=False)

    # Número al que se envían los pedidos desde el checkout
    whatsapp_number = Column(String(50), default="", nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<SiteSettings(site_name={self.site_name}, currency={self.currency})>"
