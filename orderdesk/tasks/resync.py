# orderdesk/tasks/resync.py
from redis.exceptions import RedisError

from orderdesk.celery_worker import celery_app
from orderdesk.services.order_feed import OrderFeed
from orderdesk.utils.logging import get_logger

logger = get_logger(__name__)
feed = OrderFeed()


@celery_app.task(name="orderdesk.tasks.resync.resync_feed_task")
def resync_feed_task():
    """
    Periodic "resync" signal, a register that missed a notification
    refetches without waiting for the next real change.
    """
    try:
        receivers = feed.publish("resync")
    except RedisError as e:
        logger.warning(f"Resync signal not published: {e}")
        return {"published": False}

    logger.info(f"Resync signal delivered to {receivers} subscriber(s)")
    return {"published": True, "receivers": receivers}
