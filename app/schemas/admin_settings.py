from pydantic import BaseModel, EmailStr, Field, validator
from typing import Optional


class SiteSettingsUpdate(BaseModel):
    """Actualización parcial de la configuración de la tienda"""
    site_name: Optional[str] = Field(None, min_length=1, max_length=255)
    site_email: Optional[EmailStr] = None
    currency: Optional[str] = Field(None, min_length=1, max_length=10)
    contact_number: Optional[str] = Field(None, max_length=50)
    whatsapp_number: Optional[str] = Field(None, max_length=50)

    @validator('site_email', pre=True)
    def empty_email(cls, v):
        # Cadena vacía equivale a quitar el email
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @validator('currency')
    def validate_currency(cls, v):
        return v.strip().upper() if v else v
