# app/celery_worker.py
from celery import Celery

from app.utils.settings import CELERY_BROKER_URL, CELERY_RESULT_BACKEND

celery_app = Celery(
    "shop",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# tasks have to be imported explicitly so Celery registers them
celery_app.conf.imports = (
    "app.tasks.cleanup",
    "app.services.notification_service",
)

celery_app.conf.beat_schedule = {
    "purge-empty-carts-daily": {
        "task": "app.tasks.cleanup.purge_empty_carts_task",
        "schedule": 24 * 60 * 60.0,  # once a day
    },
}

celery_app.conf.timezone = "UTC"
