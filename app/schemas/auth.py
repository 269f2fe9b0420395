"""
Schemas de autenticación de administradores.
"""
from pydantic import BaseModel, EmailStr, Field, validator
from typing import Optional
from datetime import datetime


# ==================== AUTH SCHEMAS ====================

class AdminRegister(BaseModel):
    """Schema para registro de administrador"""
    email: EmailStr = Field(..., description="Email del administrador")
    password: str = Field(..., min_length=6, max_length=100, description="Contraseña (mínimo 6 caracteres)")

    @validator('password')
    def validate_password(cls, v):
        """Validar que la contraseña sea fuerte"""
        if not any(char.isdigit() for char in v):
            raise ValueError('La contraseña debe contener al menos un número')
        if not any(char.isupper() for char in v):
            raise ValueError('La contraseña debe contener al menos una mayúscula')
        if not any(char.islower() for char in v):
            raise ValueError('La contraseña debe contener al menos una minúscula')
        return v


class AdminLogin(BaseModel):
    """Schema para login de administrador"""
    email: EmailStr = Field(..., description="Email del administrador")
    password: str = Field(..., min_length=1, description="Contraseña")


# ==================== IDENTITY ====================

class Identity(BaseModel):
    """Identidad resuelta por el proveedor a partir de un token de sesión"""
    id: str
    email: str
    created_at: Optional[datetime] = None


class AuthSession(BaseModel):
    """Sesión emitida por el proveedor de identidad"""
    access_token: Optional[str] = Field(None, description="Token de sesión (None si el proveedor exige confirmar email)")
    token_type: str = Field(default="bearer", description="Tipo de token")
    expires_in: int = Field(0, description="Segundos hasta la expiración")
    identity: Identity
