# orderdesk/services/order_feed.py
import time
from typing import Callable, Hashable, Iterator

import redis
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from orderdesk.utils.retry import redis_retry
from orderdesk.utils.settings import REDIS_URL, ORDERS_CHANNEL, FEED_POLL_SECONDS
from orderdesk.utils.logging import get_logger

logger = get_logger(__name__)


class ChangeSignal(BaseModel):
    """
    "Something changed in the queue". Consumers must not trust the payload,
    it only tells them to refetch the sent set.
    """

    event: str
    order_id: int | None = None

    @classmethod
    def parse(cls, raw) -> "ChangeSignal":
        try:
            return cls.model_validate_json(raw)
        except PydanticValidationError:
            # still a change notification, just an unreadable one
            return cls(event="unknown")


class OrderFeed:
    """
    Fan-out of queue changes over redis pub/sub.
    delivery is at most once, a missed message heals on the next one
    """

    def __init__(
        self,
        client: redis.Redis | None = None,
        url: str | None = None,
        channel: str = ORDERS_CHANNEL,
    ):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )
        self.channel = channel

    @redis_retry()
    def publish(self, event: str, order_id: int | None = None) -> int:
        signal = ChangeSignal(event=event, order_id=order_id)
        logger.info(f"Publish {signal.event} (order {signal.order_id}) on {self.channel}")
        # number of subscribers that got it
        return self.redis.publish(self.channel, signal.model_dump_json())

    def subscribe(self, timeout: float = 1.0) -> "FeedSubscription":
        pubsub = self.redis.pubsub(ignore_subscribe_messages=True)
        pubsub.subscribe(self.channel)
        logger.info(f"Subscribed to {self.channel}")
        return FeedSubscription(pubsub, timeout=timeout)


class FeedSubscription:
    """Iterator of ChangeSignals read from a redis pubsub, until close()."""

    def __init__(self, pubsub, timeout: float = 1.0):
        self.pubsub = pubsub
        self.timeout = timeout
        self._closed = False

    def __iter__(self) -> Iterator[ChangeSignal]:
        while not self._closed:
            message = self.pubsub.get_message(timeout=self.timeout)
            if message is None or message.get("type") != "message":
                continue
            yield ChangeSignal.parse(message["data"])

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.pubsub.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class PollingSubscription:
    """
    Same contract as FeedSubscription without pub/sub: polls a fingerprint
    of the queue and yields a signal whenever it changes.
    """

    def __init__(
        self,
        fetch_signature: Callable[[], Hashable],
        interval: float = FEED_POLL_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.fetch_signature = fetch_signature
        self.interval = interval
        self.sleep = sleep
        self._closed = False

    def __iter__(self) -> Iterator[ChangeSignal]:
        last = self.fetch_signature()
        while not self._closed:
            self.sleep(self.interval)
            current = self.fetch_signature()
            if current != last:
                last = current
                yield ChangeSignal(event="poll")

    def close(self) -> None:
        self._closed = True

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
