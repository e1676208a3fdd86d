"""Health check endpoints"""

import logging
from datetime import datetime

from fastapi import APIRouter, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from hiring_platform import __version__
from hiring_platform.database import SessionLocal, get_engine

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def basic_health_check():
    """
    Basic health check endpoint (no authentication required)

    Returns simple health status and timestamp
    """
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat() + "Z"
    }


@router.get("/api/v1/health", status_code=status.HTTP_200_OK)
def detailed_health_check():
    """
    Detailed health check with database status (no authentication required)
    """
    services = {}
    overall_status = "healthy"

    try:
        get_engine()
        db = SessionLocal()
        try:
            db.execute(text("SELECT 1")).scalar_one()
        finally:
            db.close()
        services["database"] = "connected"
    except SQLAlchemyError as e:
        logger.warning(f"Database health check failed: {e}")
        services["database"] = f"disconnected: {str(e)}"
        overall_status = "degraded"

    return {
        "status": overall_status,
        "version": __version__,
        "timestamp": datetime.utcnow().isoformat() + "Z",
        "services": services
    }
