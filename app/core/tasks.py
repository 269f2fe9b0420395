"""
Tareas automáticas y programadas del sistema.
"""
from apscheduler.schedulers.background import BackgroundScheduler
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from datetime import datetime
from core.config import settings
from core.database import SessionLocal
from models.user import AdminSession
import logging

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler()


def prune_sessions() -> int:
    """
    Eliminar sesiones de administrador expiradas o revocadas.
    Se ejecuta automáticamente cada SESSION_PRUNE_INTERVAL_HOURS.

    Returns:
        Número de sesiones eliminadas
    """
    db = SessionLocal()
    try:
        now = datetime.utcnow()

        count = db.query(AdminSession).filter(
            or_(
                AdminSession.expires_at <= now,
                AdminSession.revoked_at.isnot(None)
            )
        ).delete(synchronize_session=False)

        db.commit()

        if count:
            logger.info(f"Tarea automática: {count} sesión(es) expirada(s) o revocada(s) eliminada(s)")
        else:
            logger.debug("Tarea automática: no hay sesiones para eliminar")
        return count

    except SQLAlchemyError as e:
        logger.error(f"Error al eliminar sesiones expiradas: {str(e)}")
        db.rollback()
        return 0
    finally:
        db.close()


def start_scheduler():
    """
    Iniciar el scheduler de tareas automáticas.
    Se llama al startup de la aplicación.
    """
    if not settings.SCHEDULER_ENABLED:
        logger.info("Scheduler deshabilitado por configuración")
        return

    if not scheduler.running:
        scheduler.add_job(
            prune_sessions,
            'interval',
            hours=settings.SESSION_PRUNE_INTERVAL_HOURS,
            id='prune_sessions',
            name='Eliminar sesiones expiradas o revocadas',
            replace_existing=True
        )

        scheduler.start()
        logger.info("Scheduler de tareas automáticas iniciado")


def stop_scheduler():
    """
    Detener el scheduler de tareas automáticas.
    Se llama al shutdown de la aplicación.
    """
    if scheduler.running:
        scheduler.shutdown()
        logger.info("Scheduler de tareas automáticas detenido")
