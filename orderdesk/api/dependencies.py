# orderdesk/api/dependencies.py
from functools import lru_cache

from orderdesk.services.cart_service import CartSessions
from orderdesk.services.catalog_client import CatalogClient
from orderdesk.services.draft_store import DraftStore
from orderdesk.services.order_feed import OrderFeed


@lru_cache
def get_sessions() -> CartSessions:
    return CartSessions(store_factory=DraftStore)


@lru_cache
def get_feed() -> OrderFeed:
    return OrderFeed()


def get_catalog() -> CatalogClient:
    return CatalogClient()
