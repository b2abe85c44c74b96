"""
Health check endpoints
"""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from quasar import __version__
from quasar.core.config import get_settings
from quasar.core.database import get_db
from quasar.core.logging_config import LoggingConfig
from quasar.db.migrator import Migrator

logger = LoggingConfig.get_logger(__name__)
router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """
    Basic health check endpoint

    Returns:
        dict: Health status
    """
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": get_settings().app_name,
    }


@router.get("/health/detailed")
async def detailed_health_check(db: Session = Depends(get_db)):
    """
    Detailed health check with component status

    Returns:
        dict: Database connectivity and migration state
    """
    settings = get_settings()
    health_status = {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": settings.app_name,
        "version": __version__,
        "environment": settings.app_env,
        "components": {}
    }

    overall_healthy = True

    # Check database
    try:
        db.execute(text("SELECT 1"))
        health_status["components"]["database"] = {
            "status": "healthy",
            "message": "Database connection successful"
        }
    except Exception as e:
        overall_healthy = False
        logger.error(f"Database health check failed: {e}")
        health_status["components"]["database"] = {
            "status": "unhealthy",
            "message": f"Database connection failed: {str(e)}",
            "error": type(e).__name__
        }

    # Check migration state
    try:
        migrator = Migrator(settings.database_url)
        current = migrator.current()
        pending = migrator.pending()
        health_status["components"]["migrations"] = {
            "status": "healthy" if not pending else "warning",
            "current": current,
            "heads": migrator.heads(),
            "pending": pending,
        }
    except Exception as e:
        overall_healthy = False
        logger.error(f"Migration health check failed: {e}")
        health_status["components"]["migrations"] = {
            "status": "unhealthy",
            "message": str(e),
            "error": type(e).__name__
        }

    log_counts = LoggingConfig.get_metrics()
    health_status["components"]["logging"] = {
        "status": "healthy" if not log_counts["CRITICAL"] else "warning",
        "counts": log_counts,
    }

    if not overall_healthy:
        health_status["status"] = "unhealthy"
    return health_status
