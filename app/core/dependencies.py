"""
Dependencias de sesión para FastAPI (Session Gate).

Soporta dos formas de enviar el token de sesión:
1. Cookie HttpOnly 'session' - la que establece /api/login
2. Bearer Token (Authorization header) - clientes de API

El token se valida en cada petición contra el proveedor de identidad y la
identidad resuelta queda en request.state.identity. No hay estado global de sesión.
"""
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional
from core.cookie_auth import get_session_token_from_request
from core.exceptions import AuthenticationError
from core.identity_service import identity_service
from schemas.auth import Identity


# Solo documenta el esquema en OpenAPI; la verificación real la hace get_current_identity
security = HTTPBearer(auto_error=False)


async def get_current_identity(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Identity:
    """
    Obtener la identidad del administrador desde la cookie de sesión o Bearer token.

    Uso:
        @router.post("/products")
        async def create_product(identity: Identity = Depends(get_current_identity)):
            ...
    """
    token = get_session_token_from_request(request)

    if not token and credentials:
        token = credentials.credentials

    if not token:
        raise AuthenticationError("Sesión requerida", error="AUTHENTICATION_REQUIRED")

    identity = await identity_service.provider.validate_session(token)

    request.state.identity = identity
    request.state.session_token = token
    return identity
