# orderdesk/services/fulfillment.py
from typing import Iterable, List

from orderdesk.domain.errors import ConflictOnComplete
from orderdesk.domain.schemas import OrderOut
from orderdesk.services.order_feed import ChangeSignal
from orderdesk.services.order_service import OrderService
from orderdesk.utils.logging import get_logger

logger = get_logger(__name__)


class FulfillmentConsumer:
    """
    Register station view of the queue.

    -every signal only triggers a refetch of the sent set, the payload is ignored
    -completion is a race between stations, the loser refreshes its view
    """

    def __init__(self, service: OrderService, name: str = "caja"):
        self.service = service
        self.name = name
        self.orders: List[OrderOut] = []
        self.arrived: List[int] = []
        self._loaded = False

    def refresh(self) -> List[OrderOut]:
        previous = {order.id for order in self.orders}
        self.orders = self.service.list_sent()

        # first load is not "new orders", nothing to alert about
        if self._loaded:
            self.arrived = [order.id for order in self.orders if order.id not in previous]
        else:
            self.arrived = []
        self._loaded = True

        if self.arrived:
            logger.info(f"{self.name}: {len(self.arrived)} new order(s) {self.arrived}")
        return self.orders

    @property
    def new_orders_since_last_refresh(self) -> int:
        return len(self.arrived)

    def follow(self, subscription: Iterable[ChangeSignal], limit: int | None = None) -> int:
        """Refreshes on every signal, returns how many signals were handled."""
        self.refresh()

        handled = 0
        for signal in subscription:
            logger.info(f"{self.name}: got {signal.event} (order {signal.order_id}), refreshing")
            self.refresh()
            handled += 1
            if limit is not None and handled >= limit:
                break
        return handled

    def complete(self, order_id: int) -> bool:
        try:
            self.service.complete(order_id)
        except ConflictOnComplete:
            # stale view, another station was faster
            logger.info(f"{self.name}: order {order_id} already completed elsewhere")
            self.refresh()
            return False

        self.refresh()
        return True
