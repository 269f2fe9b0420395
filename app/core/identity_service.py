"""
Identity Service - Interfaz abstracta del proveedor de identidad.
Permite validar sesiones contra el proveedor local (JWT propio) o contra
un proveedor administrado (Supabase Auth / GoTrue) con la misma interfaz.
"""

from abc import ABC, abstractmethod
from typing import Optional

from schemas.auth import AuthSession, Identity


class IdentityProvider(ABC):
    """
    Interfaz abstracta para proveedores de identidad.
    Todas las operaciones pueden suspenderse esperando al proveedor.
    """

    @abstractmethod
    async def authenticate(self, email: str, password: str) -> AuthSession:
        """
        Valida credenciales y emite una sesión.

        Raises:
            AuthenticationError: credenciales inválidas
            UpstreamError: el proveedor no respondió
        """
        pass

    @abstractmethod
    async def register(self, email: str, password: str) -> AuthSession:
        """
        Registra un administrador y, si el proveedor lo permite, emite una sesión.

        Raises:
            ConflictError: el email ya está registrado
        """
        pass

    @abstractmethod
    async def validate_session(self, token: str) -> Identity:
        """
        Resuelve la identidad dueña de un token de sesión.

        Raises:
            AuthenticationError: token inválido, expirado o revocado
        """
        pass

    @abstractmethod
    async def sign_out(self, token: str) -> None:
        """
        Revoca la sesión. Un token ya inválido no es un error.
        """
        pass


class IdentityService:
    """
    Servicio de identidad que gestiona el proveedor activo.
    Patrón Factory para seleccionar el proveedor según configuración.
    """

    def __init__(self):
        self._provider: Optional[IdentityProvider] = None

    def initialize(self, provider_name: str, **config) -> None:
        """
        Inicializa el proveedor de identidad según el nombre.

        Args:
            provider_name: Nombre del proveedor (local, supabase)
            **config: Configuración específica del proveedor
        """
        if provider_name == "local":
            from core.identity_providers.local import LocalIdentityProvider
            self._provider = LocalIdentityProvider(**config)
        elif provider_name == "supabase":
            from core.identity_providers.supabase import SupabaseIdentityProvider
            self._provider = SupabaseIdentityProvider(**config)
        else:
            raise ValueError(f"Proveedor de identidad no soportado: {provider_name}")

    def use(self, provider: IdentityProvider) -> None:
        """Registrar un proveedor ya construido"""
        self._provider = provider

    @property
    def provider(self) -> IdentityProvider:
        """
        Obtiene el proveedor de identidad activo.
        """
        if not self._provider:
            raise RuntimeError("Identity service not initialized")
        return self._provider


# Instancia global del servicio de identidad
identity_service = IdentityService()
