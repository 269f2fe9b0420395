from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.orm import sessionmaker
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.pool import StaticPool
from core.config import settings
from core.exceptions import ConflictError, UpstreamError
import logging

logger = logging.getLogger(__name__)

# URL de conexión (PostgreSQL en producción, SQLite para pruebas locales)
DATABASE_URL = settings.DATABASE_URL

# SQLite en memoria necesita una sola conexión compartida entre hilos
if DATABASE_URL.startswith("sqlite"):
    engine = create_engine(
        DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
else:
    engine = create_engine(DATABASE_URL, pool_pre_ping=True)

# Crear la sesión
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base para los modelos
Base = declarative_base()

# Dependency para FastAPI
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def commit_or_rollback(db, conflict_message: str = None, conflict_error: str = "CONFLICT"):
    """
    Confirmar la transacción actual o revertirla completa.

    Args:
        db: Sesión de SQLAlchemy
        conflict_message: Si se indica, una violación de unicidad se reporta como 409

    Raises:
        ConflictError: violación de unicidad (solo con conflict_message)
        UpstreamError: cualquier otra falla de la base de datos
    """
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        if conflict_message:
            raise ConflictError(conflict_message, error=conflict_error)
        logger.error(f"Error de integridad al guardar: {str(e)}")
        raise UpstreamError(f"Error al guardar los cambios: {str(e.orig)}", error="DATABASE_ERROR")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error de base de datos al guardar: {str(e)}")
        raise UpstreamError(f"Error al guardar los cambios: {str(e)}", error="DATABASE_ERROR")
