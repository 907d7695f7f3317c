from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session

from app.data.database import get_db
from app.api.routers.orders import get_lock_service
from app.services.lock_service import LockService
from app.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
def health(
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
):
    checks = {}

    try:
        db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        logger.error(f"Health check: database unreachable: {e}")
        checks["database"] = "error"

    try:
        lock_service.redis.ping()
        checks["redis"] = "ok"
    except Exception as e:
        logger.error(f"Health check: redis unreachable: {e}")
        checks["redis"] = "error"

    healthy = all(v == "ok" for v in checks.values())
    return JSONResponse(
        status_code=200 if healthy else 503,
        content={"status": "ok" if healthy else "degraded", **checks},
    )
