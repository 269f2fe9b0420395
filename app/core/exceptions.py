"""
Errores de dominio de la API.

Cada error conoce su código HTTP y su código de error; el handler registrado en
main.py los convierte al formato estándar de respuesta:

    {"success": false, "status_code": 404, "message": "...", "error": "PRODUCT_NOT_FOUND"}
"""
from typing import Any, Dict, Optional


class AppError(Exception):
    """Error base de la aplicación"""
    status_code: int = 500
    error: str = "INTERNAL_ERROR"
    message: str = "Error interno del servidor"

    def __init__(
        self,
        message: Optional[str] = None,
        error: Optional[str] = None,
        details: Any = None,
        headers: Optional[Dict[str, str]] = None
    ):
        self.message = message or self.message
        self.error = error or self.error
        self.details = details
        self.headers = headers
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        content = {
            "success": False,
            "status_code": self.status_code,
            "message": self.message,
            "error": self.error
        }
        if self.details is not None:
            content["details"] = self.details
        return content


class ValidationError(AppError):
    status_code = 400
    error = "VALIDATION_ERROR"
    message = "Error de validación"


class AuthenticationError(AppError):
    status_code = 401
    error = "AUTHENTICATION_REQUIRED"
    message = "Sesión requerida"

    def __init__(self, *args, **kwargs):
        kwargs.setdefault("headers", {"WWW-Authenticate": "Bearer"})
        super().__init__(*args, **kwargs)


class AuthorizationError(AppError):
    status_code = 403
    error = "FORBIDDEN"
    message = "No tienes permisos para realizar esta acción"


class NotFoundError(AppError):
    status_code = 404
    error = "NOT_FOUND"
    message = "Recurso no encontrado"


class ConflictError(AppError):
    status_code = 409
    error = "CONFLICT"
    message = "El recurso ya existe"


class UpstreamError(AppError):
    """Falla del almacenamiento o del proveedor externo (sin reintentos)"""
    status_code = 500
    error = "UPSTREAM_ERROR"
    message = "Error en un servicio externo"
