"""
Endpoints de sesión de administradores: registro, login, logout y usuario actual.

Seguridad de sesiones:
- El token emitido por el proveedor de identidad viaja en una cookie HttpOnly
- Soporte dual: cookie HttpOnly + Bearer token (clientes de API)
- Cada petición protegida valida el token contra el proveedor
"""
import logging

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.security import HTTPAuthorizationCredentials
from typing import Optional

from core.config import settings
from core.cookie_auth import set_session_cookie, clear_session_cookie, get_session_token_from_request
from core.dependencies import get_current_identity, security
from core.exceptions import AuthorizationError, UpstreamError
from core.identity_service import identity_service
from schemas.auth import AdminRegister, AdminLogin, AuthSession, Identity

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api",
    tags=["auth"]
)


def format_identity(identity: Identity) -> dict:
    return {
        "id": identity.id,
        "email": identity.email,
        "created_at": identity.created_at.isoformat() if identity.created_at else None
    }


def format_session(session: AuthSession) -> dict:
    return {
        "user": format_identity(session.identity),
        "access_token": session.access_token,
        "token_type": session.token_type,
        "expires_in": session.expires_in
    }


# ==================== REGISTRO ====================

@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(admin_data: AdminRegister, response: Response):
    """
    Registrar un administrador.
    Solo disponible con ALLOW_ADMIN_REGISTRATION=true.
    """
    if not settings.ALLOW_ADMIN_REGISTRATION:
        raise AuthorizationError(
            "El registro de administradores está deshabilitado",
            error="REGISTRATION_DISABLED"
        )

    session = await identity_service.provider.register(admin_data.email, admin_data.password)

    # Algunos proveedores exigen confirmar el email antes de emitir sesión
    if session.access_token:
        set_session_cookie(response, session.access_token, session.expires_in or None)

    return {
        "success": True,
        "status_code": 201,
        "message": "Administrador registrado exitosamente",
        "data": format_session(session)
    }


# ==================== LOGIN / LOGOUT ====================

@router.post("/login")
async def login(credentials: AdminLogin, response: Response):
    """
    Iniciar sesión.

    - Valida las credenciales contra el proveedor de identidad
    - Establece la cookie HttpOnly de sesión
    - También retorna el token en el body para clientes de API
    """
    session = await identity_service.provider.authenticate(credentials.email, credentials.password)

    set_session_cookie(response, session.access_token, session.expires_in or None)
    logger.info(f"Login de administrador: {session.identity.email}")

    return {
        "success": True,
        "status_code": 200,
        "message": "Login exitoso",
        "data": format_session(session)
    }


@router.post("/logout")
async def logout(
    request: Request,
    response: Response,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
):
    """
    Cerrar sesión.

    - Revoca la sesión en el proveedor
    - Elimina la cookie de sesión
    - Sin sesión activa también responde 200
    """
    token = get_session_token_from_request(request)
    if not token and credentials:
        token = credentials.credentials

    if token:
        try:
            await identity_service.provider.sign_out(token)
        except UpstreamError as e:
            # La cookie se borra igual; el token expira por su cuenta
            logger.error(f"No se pudo revocar la sesión en el proveedor: {e.message}")

    clear_session_cookie(response)

    return {
        "success": True,
        "status_code": 200,
        "message": "Sesión cerrada exitosamente",
        "data": None
    }


# ==================== USUARIO ACTUAL ====================

@router.get("/user")
async def get_current_user_info(identity: Identity = Depends(get_current_identity)):
    """
    Obtener la identidad de la sesión actual.
    """
    return {
        "success": True,
        "status_code": 200,
        "message": "Sesión válida",
        "data": format_identity(identity)
    }
