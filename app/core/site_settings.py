"""
Acceso a la configuración de la tienda (registro único).
"""
from sqlalchemy.orm import Session
from models.admin_settings import SiteSettings


def get_or_create_settings(db: Session) -> SiteSettings:
    """
    Obtener o crear el único registro de configuraciones.
    Solo debe existir UN registro en la tabla.
    """
    site_settings = db.query(SiteSettings).order_by(SiteSettings.id.asc()).first()
    if not site_settings:
        # Crear configuración inicial con valores por defecto
        site_settings = SiteSettings()
        db.add(site_settings)
        db.commit()
        db.refresh(site_settings)
    return site_settings


def format_settings(site_settings: SiteSettings) -> dict:
    return {
        "id": site_settings.id,
        "site_name": site_settings.site_name,
        "site_email": site_settings.site_email,
        "currency": site_settings.currency,
        "contact_number": site_settings.contact_number,
        "whatsapp_number": site_settings.whatsapp_number,
        "updated_at": site_settings.updated_at.isoformat() if site_settings.updated_at else None
    }
