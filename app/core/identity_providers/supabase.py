"""
Supabase Identity Provider
Implementa la interfaz IdentityProvider contra la API REST de Supabase Auth (GoTrue).
"""

import logging
from typing import Any, Dict, Optional

import httpx

from core.exceptions import AuthenticationError, ConflictError, UpstreamError, ValidationError
from core.identity_service import IdentityProvider
from schemas.auth import AuthSession, Identity

logger = logging.getLogger(__name__)


class SupabaseIdentityProvider(IdentityProvider):
    """
    Proveedor administrado: las credenciales y sesiones viven en Supabase.
    """

    def __init__(
        self,
        url: str,
        anon_key: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Args:
            url: URL del proyecto (https://<proyecto>.supabase.co)
            anon_key: API key pública del proyecto
            timeout: Timeout en segundos para cada llamada
            transport: Transporte httpx alternativo (pruebas)
        """
        if not url or not anon_key:
            raise ValueError("SUPABASE_URL y SUPABASE_ANON_KEY son requeridos")
        self.base_url = url.rstrip("/") + "/auth/v1"
        self.anon_key = anon_key
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers={"apikey": self.anon_key},
            timeout=self.timeout,
            transport=self.transport
        )

    async def _request(
        self,
        method: str,
        path: str,
        token: Optional[str] = None,
        **kwargs
    ) -> httpx.Response:
        headers = {"Authorization": f"Bearer {token}"} if token else None
        try:
            async with self._client() as client:
                return await client.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Error comunicando con Supabase Auth ({method} {path}): {str(e)}")
            raise UpstreamError(f"Proveedor de identidad no disponible: {str(e)}")

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text
        return body.get("msg") or body.get("error_description") or body.get("message") or str(body)

    @staticmethod
    def _to_identity(user: Dict[str, Any]) -> Identity:
        return Identity(
            id=str(user["id"]),
            email=user.get("email") or "",
            created_at=user.get("created_at")
        )

    def _to_session(self, body: Dict[str, Any]) -> AuthSession:
        # signup con confirmación de email devuelve solo el usuario
        user = body.get("user") or body
        return AuthSession(
            access_token=body.get("access_token"),
            token_type=body.get("token_type", "bearer"),
            expires_in=body.get("expires_in", 0),
            identity=self._to_identity(user)
        )

    async def authenticate(self, email: str, password: str) -> AuthSession:
        response = await self._request(
            "POST",
            "/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password}
        )

        if response.status_code in (400, 401, 422):
            logger.warning(f"Intento de login fallido para {email}: {self._error_message(response)}")
            raise AuthenticationError("Credenciales inválidas", error="INVALID_CREDENTIALS")
        if response.is_error:
            raise UpstreamError(self._error_message(response))

        return self._to_session(response.json())

    async def register(self, email: str, password: str) -> AuthSession:
        response = await self._request(
            "POST",
            "/signup",
            json={"email": email, "password": password}
        )

        if response.status_code == 422 and "registered" in self._error_message(response).lower():
            raise ConflictError("El email ya está registrado", error="EMAIL_ALREADY_EXISTS")
        if response.status_code in (400, 422):
            raise ValidationError(self._error_message(response), error="REGISTRATION_FAILED")
        if response.is_error:
            raise UpstreamError(self._error_message(response))

        return self._to_session(response.json())

    async def validate_session(self, token: str) -> Identity:
        response = await self._request("GET", "/user", token=token)

        if response.status_code in (401, 403, 404):
            raise AuthenticationError("Sesión inválida o expirada", error="INVALID_SESSION")
        if response.is_error:
            raise UpstreamError(self._error_message(response))

        return self._to_identity(response.json())

    async def sign_out(self, token: str) -> None:
        response = await self._request("POST", "/logout", token=token)

        # Un token ya inválido no impide cerrar la sesión local
        if response.is_error and response.status_code not in (401, 403, 404):
            raise UpstreamError(self._error_message(response))
