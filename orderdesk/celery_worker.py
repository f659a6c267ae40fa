# orderdesk/celery_worker.py
from celery import Celery

from orderdesk.utils.settings import CELERY_BROKER_URL, CELERY_RESULT_BACKEND, FEED_RESYNC_SECONDS

celery_app = Celery(
    "orderdesk",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# tasks must be imported explicitly so the worker registers them
celery_app.conf.imports = (
    "orderdesk.tasks.resync",
)

celery_app.conf.beat_schedule = {
    "resync-order-feed": {
        "task": "orderdesk.tasks.resync.resync_feed_task",
        "schedule": FEED_RESYNC_SECONDS,
    },
}

celery_app.conf.timezone = "UTC"
