# orderdesk/services/order_service.py
from datetime import date, datetime, time, timedelta, timezone
from typing import Callable, List, Tuple

from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from orderdesk.data.models.order import OrderModel
from orderdesk.data.models.order_line import OrderLineModel
from orderdesk.domain.errors import (
    ConflictOnComplete,
    NotReady,
    OrderNotFound,
    SubmissionPartialFailure,
)
from orderdesk.domain.quantity import quantity_columns, quantity_from_columns, render_label
from orderdesk.domain.schemas import OrderLineOut, OrderOut
from orderdesk.repos.employee_repo import EmployeeRepo
from orderdesk.repos.order_repo import OrderRepo
from orderdesk.services.cart_service import CartService
from orderdesk.services.order_feed import OrderFeed
from orderdesk.utils.logging import get_logger

logger = get_logger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def week_bounds(day: date) -> Tuple[datetime, datetime]:
    """Monday 00:00 to Saturday 23:59:59.999999 (UTC) of the week holding `day`."""
    monday = day - timedelta(days=day.weekday())
    saturday = monday + timedelta(days=5)
    start = datetime.combine(monday, time.min, tzinfo=timezone.utc)
    end = datetime.combine(saturday, time.max, tzinfo=timezone.utc)
    return start, end


class OrderService:
    """
    Shared order queue.

    commands: submit_cart (cart -> sent order), complete (sent -> completed)
    queries: list_sent (FIFO), list_completed (history), get_order

    Every successful command is announced on the feed, a failing feed never
    fails the command.
    """

    def __init__(
        self,
        db: Session,
        feed: OrderFeed | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.db = db
        self.repo = OrderRepo(db)
        self.employees = EmployeeRepo(db)
        self.feed = feed
        self.clock = clock

    # commands
    def submit_cart(self, cart: CartService, employee_id: str | None) -> OrderOut:
        """
        Use case: send the station cart to the register.

        1. checks customer, lines and employee (NotReady, nothing written)
        2. header (sent) + all lines in one transaction
        3. clears the cart and its draft
        4. announces order_sent
        """
        customer = (cart.customer_name or "").strip()
        if not customer:
            raise NotReady("Customer name is required")

        if not cart.lines:
            raise NotReady("Cart is empty")

        if not employee_id:
            raise NotReady("Employee is not known")

        employee = self.employees.get_employee(employee_id)
        if not employee:
            raise NotReady(f"Employee {employee_id} is not known")

        order = OrderModel(
            customer_name=customer,
            employee_id=employee.id,
            status="sent",
            sent_at=self.clock(),
        )
        lines = [
            OrderLineModel(
                position=position,
                product_id=line.product.id,
                product_name=line.product.name,
                notes=line.note,
                **quantity_columns(line.quantity),
            )
            for position, line in enumerate(cart.lines)
        ]

        try:
            self.repo.add_header(order)
            self.repo.add_lines(order, lines)
            self.repo.commit()
        except SQLAlchemyError as e:
            # nothing of this order survives, the cart stays for a retry
            self.repo.rollback()
            logger.error(f"Submission from station {cart.station} rolled back: {e}")
            raise SubmissionPartialFailure("Order could not be sent, try again") from e

        order_id = order.id
        logger.info(
            f"Order {order_id} sent from station {cart.station} "
            f"for {customer!r} with {len(lines)} line(s)"
        )

        cart.clear()
        self._announce("order_sent", order_id)

        return self.get_order(order_id)

    def complete(self, order_id: int) -> OrderOut:
        """
        Use case: the register finished an order.
        Only sent -> completed, first one wins, completed_at is set once.
        """
        rowcount = self.repo.complete_if_sent(order_id, self.clock())

        if rowcount == 0:
            self.repo.rollback()
            if not self.repo.exists(order_id):
                raise OrderNotFound(f"Order {order_id} does not exist")
            logger.warning(f"Order {order_id} is no longer sent, completion rejected")
            raise ConflictOnComplete(f"Order {order_id} was already completed")

        self.repo.commit()
        logger.info(f"Order {order_id} completed")

        self._announce("order_completed", order_id)
        return self.get_order(order_id)

    # queries
    def get_order(self, order_id: int) -> OrderOut:
        order = self.repo.get_order(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} does not exist")
        return self._to_out(order)

    def list_sent(self) -> List[OrderOut]:
        return [self._to_out(order) for order in self.repo.list_sent()]

    def list_completed(self, start: datetime, end: datetime) -> List[OrderOut]:
        return [self._to_out(order) for order in self.repo.list_completed(start, end)]

    def list_completed_week(self, day: date) -> List[OrderOut]:
        return self.list_completed(*week_bounds(day))

    def sent_signature(self) -> Tuple[int, ...]:
        return self.repo.sent_ids()

    # helpers
    def _announce(self, event: str, order_id: int) -> None:
        if self.feed is None:
            return
        try:
            self.feed.publish(event, order_id)
        except RedisError as e:
            logger.warning(f"Feed publish of {event} for order {order_id} failed: {e}")

    def _to_out(self, order: OrderModel) -> OrderOut:
        return OrderOut(
            id=order.id,
            customer_name=order.customer_name,
            employee_id=order.employee_id,
            employee_name=order.employee.name if order.employee else None,
            status=order.status,
            sent_at=order.sent_at,
            completed_at=order.completed_at,
            lines=[self._line_out(line) for line in order.lines],
        )

    @staticmethod
    def _line_out(line: OrderLineModel) -> OrderLineOut:
        quantity = quantity_from_columns(line)
        return OrderLineOut(
            id=line.id,
            product_id=line.product_id,
            product_name=line.product_name,
            unit=line.unit,
            quantity=line.quantity,
            weight=line.weight,
            volume=line.volume,
            boxes=line.boxes,
            fraction=line.fraction,
            extra_units=line.extra_units,
            box_detail=line.box_detail,
            notes=line.notes,
            label=render_label(line.product_name, quantity, line.notes),
        )
