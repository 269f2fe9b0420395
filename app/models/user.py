from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from core.database import Base
import uuid

class AdminUser(Base):
    """Administrador del panel (solo para el proveedor de identidad local)"""
    __tablename__ = "admin_users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relaciones
    sessions = relationship("AdminSession", back_populates="admin", cascade="all, delete-orphan")


class AdminSession(Base):
    """
    Sesión emitida al iniciar sesión.
    El JWT lleva el jti; la fila permite revocarla en logout.
    """
    __tablename__ = "admin_sessions"

    jti = Column(String(36), primary_key=True)
    admin_id = Column(String(36), ForeignKey("admin_users.id", ondelete="CASCADE"), nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False, index=True)
    revoked_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    admin = relationship("AdminUser", back_populates="sessions")
