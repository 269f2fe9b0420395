"""
Configuración de la tienda (nombre, moneda, contacto y número de WhatsApp).
Lectura pública para el storefront; la edición requiere sesión.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.database import get_db, commit_or_rollback
from core.dependencies import get_current_identity
from core.site_settings import get_or_create_settings, format_settings
from schemas.admin_settings import SiteSettingsUpdate
from schemas.auth import Identity

router = APIRouter(prefix="/api/settings", tags=["settings"])


@router.get("")
async def get_settings(db: Session = Depends(get_db)):
    """
    Obtener la configuración pública de la tienda.
    """
    site_settings = get_or_create_settings(db)

    return {
        "success": True,
        "status_code": 200,
        "message": "Configuración obtenida exitosamente",
        "data": format_settings(site_settings)
    }


@router.patch("")
async def update_settings(
    settings_data: SiteSettingsUpdate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity)
):
    """
    Actualizar la configuración (solo los campos enviados).
    """
    site_settings = get_or_create_settings(db)

    for field, value in settings_data.model_dump(exclude_unset=True).items():
        # Nombre y moneda son obligatorios; en los demás un null vacía el campo
        if value is None:
            if field in ("site_name", "currency"):
                continue
            value = ""
        setattr(site_settings, field, value)

    commit_or_rollback(db)
    db.refresh(site_settings)

    return {
        "success": True,
        "status_code": 200,
        "message": "Configuración actualizada exitosamente",
        "data": format_settings(site_settings)
    }
