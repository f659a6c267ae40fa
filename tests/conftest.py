import os

# the real engine is never used in tests, keep its import driver-free
os.environ.setdefault("DATABASE_URL", "sqlite://")

from collections import deque
from datetime import datetime, timedelta, timezone

import pytest
from redis.exceptions import RedisError
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from orderdesk.data.database import Base
from orderdesk.data.models import EmployeeModel, OrderModel, OrderLineModel  # noqa: F401
from orderdesk.domain.schemas import Product
from orderdesk.services.cart_service import CartService
from orderdesk.services.draft_store import DraftStore
from orderdesk.services.order_feed import OrderFeed
from orderdesk.services.order_service import OrderService


class FakePubSub:
    def __init__(self, server, ignore_subscribe_messages=False):
        self.server = server
        self.channels = set()
        self.messages = deque()
        self.closed = False

    def subscribe(self, *channels):
        self.channels.update(channels)
        self.server.subscribers.append(self)

    def get_message(self, timeout=0.0):
        if self.messages:
            return self.messages.popleft()
        return None

    def close(self):
        self.closed = True
        if self in self.server.subscribers:
            self.server.subscribers.remove(self)


class FakeRedis:
    """In-memory stand-in for the redis calls the pipeline makes."""

    def __init__(self):
        self.store = {}
        self.published = []
        self.subscribers = []
        self.fail = False

    def _check(self):
        if self.fail:
            raise RedisError("Connection refused")

    def get(self, key):
        self._check()
        return self.store.get(key)

    def set(self, key, value):
        self._check()
        self.store[key] = value
        return True

    def delete(self, *keys):
        self._check()
        return sum(1 for key in keys if self.store.pop(key, None) is not None)

    def publish(self, channel, message):
        self._check()
        self.published.append((channel, message))
        receivers = [s for s in self.subscribers if channel in s.channels]
        for sub in receivers:
            sub.messages.append({"type": "message", "channel": channel, "data": message})
        return len(receivers)

    def pubsub(self, ignore_subscribe_messages=False):
        return FakePubSub(self, ignore_subscribe_messages)


class DecodingRedis(FakeRedis):
    """Raw bytes inside, decoded on read like a client with decode_responses=True."""

    def get(self, key):
        value = super().get(key)
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value


class FakeClock:
    def __init__(self, start=None, step=timedelta(minutes=1)):
        self.now = start or datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)
        self.step = step

    def __call__(self):
        current = self.now
        self.now += self.step
        return current


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'orderdesk.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def employee(db):
    emp = EmployeeModel(id="emp-1", name="Ana", role="mostrador")
    db.add(emp)
    db.commit()
    return emp


@pytest.fixture
def redis_client():
    return FakeRedis()


@pytest.fixture
def decoding_redis():
    return DecodingRedis()


@pytest.fixture
def feed_redis():
    return FakeRedis()


@pytest.fixture
def feed(feed_redis):
    return OrderFeed(client=feed_redis, channel="orders:test")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def draft_store(redis_client):
    return DraftStore("mostrador-1", client=redis_client)


@pytest.fixture
def cart(draft_store):
    return CartService("mostrador-1", draft_store)


@pytest.fixture
def service(db, feed, clock):
    return OrderService(db, feed=feed, clock=clock)


@pytest.fixture
def products():
    return {
        "queso": Product(id="1", name="Queso", units=["kg"], location="Camara"),
        "huevos": Product(id="2", name="Huevos", units=["caja", "unidad"], location="Deposito"),
        "leche": Product(id="3", name="Leche", units=["litro"], location="Camara"),
        "papas": Product(id="4", name="Papas", units=["funda", "kg"]),
        "yerba": Product(id="5", name="Yerba", units=["unidad"], location="estanteria"),
    }


@pytest.fixture
def filled_cart(cart, products):
    cart.set_customer_name("Almacen Don Pepe")
    cart.add_line(products["yerba"], "count", {"quantity": 3})
    cart.add_line(products["queso"], "weight", {}, note="½ horma")
    cart.add_line(products["huevos"], "box", {"whole": 2, "fraction": "½", "extra_units": 3})
    return cart
