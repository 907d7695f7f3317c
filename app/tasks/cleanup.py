# app/tasks/cleanup.py
from datetime import datetime, timezone, timedelta

from app.celery_worker import celery_app
from app.data.database import SessionLocal
from app.repos.cart_repo import CartRepo
from app.utils.settings import EMPTY_CART_MAX_AGE_DAYS
from app.utils.logging import get_logger

logger = get_logger(__name__)


def purge_empty_carts(db, max_age_days: int = EMPTY_CART_MAX_AGE_DAYS) -> int:
    cutoff = datetime.now(timezone.utc) - timedelta(days=max_age_days)
    repo = CartRepo(db)
    deleted = repo.delete_empty_carts(cutoff)
    repo.commit()
    logger.info(f"Purged {deleted} empty carts untouched since {cutoff.isoformat()}")
    return deleted


@celery_app.task(name="app.tasks.cleanup.purge_empty_carts_task")
def purge_empty_carts_task():
    logger.info("Purge empty carts task started")

    db = SessionLocal()
    try:
        return purge_empty_carts(db)
    finally:
        db.close()
