from fastapi import APIRouter
from sqlalchemy import text

from inventory_api.database import engine
from inventory_api.utils.cache import cache_service
from inventory_api.utils.storage import get_upload_dir

router = APIRouter(prefix="/health", tags=["Health"])


@router.get(
    "/",
    summary="Health check",
    description="Basic liveness check."
)
def health_check():
    """Simple health check."""
    return {"status": "healthy"}


@router.get(
    "/ready",
    summary="Readiness check",
    description="Check the database, the Redis cache and the upload directory."
)
def readiness_check():
    """
    Readiness check for all dependencies.

    Only the database and the upload directory gate readiness; the cache
    is reported but optional.
    """
    checks = {
        "database": False,
        "uploads": False,
        "cache": False,
    }

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            checks["database"] = True
    except Exception as e:
        checks["database_error"] = str(e)

    try:
        upload_dir = get_upload_dir()
        checks["uploads"] = upload_dir.is_dir()
    except OSError as e:
        checks["uploads_error"] = str(e)

    try:
        checks["cache"] = cache_service.ping()
    except Exception as e:
        checks["cache_error"] = str(e)

    ready = checks["database"] and checks["uploads"]

    return {
        "status": "ready" if ready else "not_ready",
        "checks": checks
    }
