"""
Utilidades para seguridad: contraseñas y JWT de sesión
"""
import bcrypt
import uuid
from datetime import datetime, timedelta
from typing import Optional, Dict, Any, Tuple
from jose import JWTError, jwt
from core.config import settings


# ==================== PASSWORD HASHING ====================

def hash_password(password: str) -> str:
    """
    Hash password usando bcrypt.
    Genera un hash de 60 caracteres.
    """
    return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt()).decode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verificar si una contraseña coincide con su hash.
    """
    return bcrypt.checkpw(plain_password.encode('utf-8'), hashed_password.encode('utf-8'))


# ==================== JWT TOKEN MANAGEMENT ====================

def create_session_token(
    data: Dict[str, Any],
    expires_delta: Optional[timedelta] = None
) -> Tuple[str, str, datetime]:
    """
    Crear un token JWT de sesión.

    Args:
        data: Datos a incluir en el token (payload)
        expires_delta: Tiempo de expiración personalizado (opcional)

    Returns:
        Tupla (token, jti, fecha de expiración en UTC sin zona horaria)
    """
    to_encode = data.copy()
    now = datetime.utcnow()
    expire = now + (expires_delta or timedelta(minutes=settings.SESSION_EXPIRE_MINUTES))
    jti = str(uuid.uuid4())

    to_encode.update({
        "exp": expire,
        "iat": now,
        "type": "session",
        "jti": jti  # Identifica la sesión para poder revocarla
    })

    encoded_jwt = jwt.encode(
        to_encode,
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM
    )

    return encoded_jwt, jti, expire


def decode_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decodificar y validar un token JWT.

    Args:
        token: Token JWT a decodificar

    Returns:
        Dict con el payload del token o None si es inválido o expiró
    """
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM]
        )
    except JWTError:
        return None

    if payload.get("type") != "session":
        return None
    return payload
