"""
Local Identity Provider
Administradores guardados en la base de datos, contraseñas con bcrypt y
sesiones JWT revocables (cada token tiene su fila en admin_sessions).
"""

import logging
from datetime import datetime
from typing import Callable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from core.database import SessionLocal
from core.exceptions import AuthenticationError, ConflictError
from core.identity_service import IdentityProvider
from core.security import create_session_token, decode_token, hash_password, verify_password
from models.user import AdminSession, AdminUser
from schemas.auth import AuthSession, Identity

logger = logging.getLogger(__name__)


def _identity(admin: AdminUser) -> Identity:
    return Identity(id=admin.id, email=admin.email, created_at=admin.created_at)


class LocalIdentityProvider(IdentityProvider):
    """
    Implementación del proveedor de identidad sobre la base de datos propia.
    """

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self.session_factory = session_factory

    def _issue_session(self, db: Session, admin: AdminUser) -> AuthSession:
        """Crear el JWT y registrar la sesión para poder revocarla"""
        token, jti, expires_at = create_session_token(
            data={"sub": admin.id, "email": admin.email}
        )
        db.add(AdminSession(jti=jti, admin_id=admin.id, expires_at=expires_at))
        db.commit()

        return AuthSession(
            access_token=token,
            expires_in=int((expires_at - datetime.utcnow()).total_seconds()),
            identity=_identity(admin)
        )

    # bcrypt y las consultas son bloqueantes: corren en el threadpool
    async def authenticate(self, email: str, password: str) -> AuthSession:
        return await run_in_threadpool(self._authenticate, email, password)

    async def register(self, email: str, password: str) -> AuthSession:
        return await run_in_threadpool(self._register, email, password)

    async def validate_session(self, token: str) -> Identity:
        return await run_in_threadpool(self._validate_session, token)

    async def sign_out(self, token: str) -> None:
        await run_in_threadpool(self._sign_out, token)

    def _authenticate(self, email: str, password: str) -> AuthSession:
        db = self.session_factory()
        try:
            admin = db.query(AdminUser).filter(AdminUser.email == email.lower()).first()

            if not admin or not verify_password(password, admin.hashed_password):
                logger.warning(f"Intento de login fallido para {email}")
                raise AuthenticationError(
                    "Credenciales inválidas",
                    error="INVALID_CREDENTIALS"
                )

            return self._issue_session(db, admin)
        finally:
            db.close()

    def _register(self, email: str, password: str) -> AuthSession:
        db = self.session_factory()
        try:
            existing = db.query(AdminUser).filter(AdminUser.email == email.lower()).first()
            if existing:
                raise ConflictError("El email ya está registrado", error="EMAIL_ALREADY_EXISTS")

            admin = AdminUser(email=email.lower(), hashed_password=hash_password(password))
            db.add(admin)
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                raise ConflictError("El email ya está registrado", error="EMAIL_ALREADY_EXISTS")
            db.refresh(admin)

            logger.info(f"Administrador registrado: {admin.email}")
            return self._issue_session(db, admin)
        finally:
            db.close()

    def _validate_session(self, token: str) -> Identity:
        payload = decode_token(token)
        if not payload or not payload.get("jti") or not payload.get("sub"):
            raise AuthenticationError("Sesión inválida o expirada", error="INVALID_SESSION")

        db = self.session_factory()
        try:
            session = db.query(AdminSession).filter(
                AdminSession.jti == payload["jti"],
                AdminSession.admin_id == payload["sub"],
                AdminSession.revoked_at.is_(None),
                AdminSession.expires_at > datetime.utcnow()
            ).first()

            if not session:
                raise AuthenticationError("Sesión revocada o expirada", error="INVALID_SESSION")

            return _identity(session.admin)
        finally:
            db.close()

    def _sign_out(self, token: str) -> None:
        payload = decode_token(token)
        if not payload or not payload.get("jti"):
            return

        db = self.session_factory()
        try:
            session = db.query(AdminSession).filter(AdminSession.jti == payload["jti"]).first()
            if session and session.revoked_at is None:
                session.revoked_at = datetime.utcnow()
                db.commit()
        finally:
            db.close()
