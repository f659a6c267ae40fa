"""Tests for submission and the sent -> completed lifecycle."""

import json
from decimal import Decimal
from datetime import date, datetime, timezone

import pytest
from sqlalchemy.exc import OperationalError

from orderdesk.data.models.order import OrderModel
from orderdesk.data.models.order_line import OrderLineModel
from orderdesk.domain.errors import (
    ConflictOnComplete,
    NotReady,
    OrderNotFound,
    SubmissionPartialFailure,
    ValidationError,
)
from orderdesk.repos.order_repo import OrderRepo
from orderdesk.services.cart_service import CartService
from orderdesk.services.draft_store import DraftStore
from orderdesk.services.order_service import OrderService, week_bounds


def _order_count(db):
    return db.query(OrderModel).count()


class TestPreconditions:
    def test_blank_customer(self, service, filled_cart, employee, db):
        filled_cart.set_customer_name("   ")

        with pytest.raises(NotReady):
            service.submit_cart(filled_cart, employee.id)

        assert _order_count(db) == 0
        assert len(filled_cart.lines) == 3

    def test_empty_cart(self, service, cart, employee, db):
        cart.set_customer_name("Mar")

        with pytest.raises(NotReady):
            service.submit_cart(cart, employee.id)

        assert _order_count(db) == 0

    @pytest.mark.parametrize("employee_id", [None, "", "ghost"])
    def test_unknown_employee(self, service, filled_cart, employee, db, employee_id):
        with pytest.raises(NotReady):
            service.submit_cart(filled_cart, employee_id)

        assert _order_count(db) == 0


class TestSubmit:
    def test_header_and_lines(self, service, filled_cart, employee):
        order = service.submit_cart(filled_cart, employee.id)

        assert order.status == "sent"
        assert order.customer_name == "Almacen Don Pepe"
        assert order.employee_name == "Ana"
        assert order.sent_at is not None
        assert order.completed_at is None
        assert [line.label for line in order.lines] == [
            "3x Yerba",
            "Queso (½ horma)",
            "Huevos - 2 y ½ cajas + 3u",
        ]

        yerba, queso, huevos = order.lines
        assert yerba.unit == "count" and yerba.quantity == 3
        assert queso.weight is None and queso.notes == "½ horma"
        assert huevos.boxes == 2
        assert huevos.fraction == 0.5
        assert huevos.extra_units == 3
        assert huevos.box_detail == "2 y ½ cajas + 3u"

    def test_cart_and_draft_are_cleared(self, service, filled_cart, employee, redis_client):
        service.submit_cart(filled_cart, employee.id)

        assert filled_cart.lines == ()
        assert filled_cart.customer_name == ""
        assert redis_client.store == {}

    def test_order_sent_is_announced(self, service, filled_cart, employee, feed_redis):
        order = service.submit_cart(filled_cart, employee.id)

        channel, message = feed_redis.published[-1]
        assert channel == "orders:test"
        assert json.loads(message) == {"event": "order_sent", "order_id": order.id}

    def test_feed_outage_does_not_fail_submission(self, service, filled_cart, employee, feed_redis):
        feed_redis.fail = True

        order = service.submit_cart(filled_cart, employee.id)

        assert order.status == "sent"
        assert filled_cart.lines == ()

    def test_weight_is_stored_exactly(self, service, cart, products, employee):
        cart.set_customer_name("Mar")
        cart.add_line(products["queso"], "weight", {"weight": "0.125"})
        with pytest.raises(ValidationError):
            cart.add_line(products["queso"], "weight", {"weight": "0.0004"})

        order = service.submit_cart(cart, employee.id)

        assert order.lines[0].weight == Decimal("0.125")
        assert order.lines[0].label == "Queso - 0.125kg"
        assert [o.id for o in service.list_sent()] == [order.id]

    def test_product_name_is_a_snapshot(self, service, filled_cart, employee, db):
        order = service.submit_cart(filled_cart, employee.id)

        line = db.get(OrderLineModel, order.lines[0].id)
        line.product_id = None  # product deleted from catalog later
        db.commit()

        again = service.get_order(order.id)
        assert again.lines[0].product_id is None
        assert again.lines[0].product_name == "Yerba"

    def test_failed_line_insert_keeps_nothing(self, service, filled_cart, employee, db, monkeypatch, redis_client):
        def broken_lines(self, order, lines):
            raise OperationalError("INSERT INTO order_lines", {}, Exception("disk I/O error"))

        monkeypatch.setattr(OrderRepo, "add_lines", broken_lines)

        with pytest.raises(SubmissionPartialFailure):
            service.submit_cart(filled_cart, employee.id)

        assert _order_count(db) == 0
        assert service.list_sent() == []
        # the cart is kept for a retry
        assert len(filled_cart.lines) == 3
        assert filled_cart.customer_name == "Almacen Don Pepe"
        assert "draft:mostrador-1:lines" in redis_client.store

        monkeypatch.undo()
        order = service.submit_cart(filled_cart, employee.id)
        assert len(order.lines) == 3

    def test_concurrent_stations_get_independent_orders(self, service, employee, products, redis_client):
        carts = []
        for station in ("mostrador-1", "mostrador-2"):
            cart = CartService(station, DraftStore(station, client=redis_client))
            cart.set_customer_name(f"Cliente {station}")
            cart.add_line(products["yerba"], "count", {})
            carts.append(cart)

        first = service.submit_cart(carts[0], employee.id)
        second = service.submit_cart(carts[1], employee.id)

        assert first.id != second.id
        assert [o.customer_name for o in service.list_sent()] == [
            "Cliente mostrador-1",
            "Cliente mostrador-2",
        ]


class TestQueue:
    def test_sent_orders_oldest_first(self, db, feed, employee, products, redis_client):
        # later submissions can carry earlier timestamps (clock skew between counters)
        times = iter([
            datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc),
            datetime(2026, 10, 19, 9, 10, tzinfo=timezone.utc),
            datetime(2026, 10, 19, 9, 20, tzinfo=timezone.utc),
        ])
        service = OrderService(db, feed=feed, clock=lambda: next(times))

        for customer in ("t3", "t1", "t2"):
            cart = CartService("m", DraftStore("m", client=redis_client))
            cart.set_customer_name(customer)
            cart.add_line(products["yerba"], "count", {})
            service.submit_cart(cart, employee.id)

        assert [o.customer_name for o in service.list_sent()] == ["t1", "t2", "t3"]

    def test_header_without_lines_is_never_listed(self, service, db, filled_cart, employee):
        db.add(OrderModel(customer_name="orphan", status="sent", sent_at=datetime(2026, 10, 1)))
        db.commit()
        order = service.submit_cart(filled_cart, employee.id)

        assert [o.id for o in service.list_sent()] == [order.id]
        assert service.sent_signature() == (order.id,)

    def test_complete(self, service, filled_cart, employee, feed_redis):
        order = service.submit_cart(filled_cart, employee.id)

        done = service.complete(order.id)

        assert done.status == "completed"
        assert done.completed_at is not None
        assert service.list_sent() == []
        assert json.loads(feed_redis.published[-1][1]) == {
            "event": "order_completed",
            "order_id": order.id,
        }

    def test_second_completion_is_rejected(self, service, filled_cart, employee, clock):
        order = service.submit_cart(filled_cart, employee.id)
        first = service.complete(order.id)

        with pytest.raises(ConflictOnComplete):
            service.complete(order.id)

        again = service.get_order(order.id)
        assert again.completed_at == first.completed_at

        start, end = week_bounds(date(2026, 10, 19))
        completed = service.list_completed(start, end)
        assert [o.id for o in completed] == [order.id]

    def test_unknown_order(self, service):
        with pytest.raises(OrderNotFound):
            service.complete(404)
        with pytest.raises(OrderNotFound):
            service.get_order(404)


class TestHistory:
    def test_week_bounds(self):
        start, end = week_bounds(date(2026, 10, 21))

        assert start == datetime(2026, 10, 19, 0, 0, tzinfo=timezone.utc)
        assert end == datetime(2026, 10, 24, 23, 59, 59, 999999, tzinfo=timezone.utc)

    def test_sunday_belongs_to_its_own_week(self):
        start, _ = week_bounds(date(2026, 10, 25))

        assert start.date() == date(2026, 10, 19)

    def test_completed_in_week_newest_first(self, db, feed, employee, products, redis_client):
        times = iter([
            datetime(2026, 10, 19, 8, 0, tzinfo=timezone.utc),   # sent a
            datetime(2026, 10, 19, 8, 5, tzinfo=timezone.utc),   # sent b
            datetime(2026, 10, 19, 8, 10, tzinfo=timezone.utc),  # sent c
            datetime(2026, 10, 20, 12, 0, tzinfo=timezone.utc),  # complete a
            datetime(2026, 10, 22, 12, 0, tzinfo=timezone.utc),  # complete b
            datetime(2026, 10, 25, 12, 0, tzinfo=timezone.utc),  # complete c, Sunday
        ])
        service = OrderService(db, feed=feed, clock=lambda: next(times))

        ids = []
        for customer in ("a", "b", "c"):
            cart = CartService("m", DraftStore("m", client=redis_client))
            cart.set_customer_name(customer)
            cart.add_line(products["yerba"], "count", {})
            ids.append(service.submit_cart(cart, employee.id).id)
        for order_id in ids:
            service.complete(order_id)

        week = service.list_completed_week(date(2026, 10, 21))

        assert [o.customer_name for o in week] == ["b", "a"]
