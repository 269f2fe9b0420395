"""
Módulo de sesión mediante cookie HttpOnly.

El token de sesión emitido por el proveedor de identidad viaja en una cookie:
- HttpOnly: JavaScript no puede acceder a la cookie
- Secure: Solo se envía por HTTPS (fuera de desarrollo)
- SameSite: Protección contra CSRF
"""
import os
from fastapi import Response, Request
from typing import Optional
from core.config import settings


# Configuración de cookies según el entorno
IS_PRODUCTION = settings.ENV != "development"
COOKIE_DOMAIN = os.getenv("COOKIE_DOMAIN", None)

SESSION_COOKIE = settings.SESSION_COOKIE_NAME


def get_cookie_settings(max_age: Optional[int] = None) -> dict:
    """
    Obtener configuración de la cookie de sesión según el entorno.

    Args:
        max_age: Segundos de vida de la cookie (default: duración de la sesión)

    Returns:
        dict con configuración de cookies
    """
    return {
        "httponly": True,  # JavaScript NO puede acceder
        "secure": IS_PRODUCTION,  # Solo HTTPS en producción
        "samesite": "lax",
        "max_age": max_age or settings.SESSION_EXPIRE_MINUTES * 60,
        "path": "/",
        "domain": COOKIE_DOMAIN if IS_PRODUCTION else None,
    }


def set_session_cookie(response: Response, token: str, max_age: Optional[int] = None) -> None:
    """
    Establecer la cookie de sesión.

    Args:
        response: Objeto Response de FastAPI
        token: Token de sesión emitido por el proveedor
        max_age: Segundos de vida (normalmente expires_in del proveedor)
    """
    response.set_cookie(
        key=SESSION_COOKIE,
        value=token,
        **get_cookie_settings(max_age)
    )


def clear_session_cookie(response: Response) -> None:
    """
    Eliminar la cookie de sesión.
    """
    response.delete_cookie(
        key=SESSION_COOKIE,
        path="/",
        domain=COOKIE_DOMAIN if IS_PRODUCTION else None,
    )


def get_session_token_from_request(request: Request) -> Optional[str]:
    """
    Obtener el token de sesión de la petición.
    Primero busca en la cookie, luego en el header Authorization.

    Returns:
        Token si se encuentra, None si no
    """
    token = request.cookies.get(SESSION_COOKIE)

    if token:
        return token

    # Fallback: header Authorization (clientes que no usan cookies)
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header.replace("Bearer ", "", 1).strip() or None

    return None
