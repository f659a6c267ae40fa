# orderdesk/repos/order_repo.py
from datetime import datetime
from typing import Iterable, List, Tuple

from sqlalchemy import select, update
from sqlalchemy.orm import Session, selectinload

from orderdesk.data.models.order import OrderModel
from orderdesk.data.models.order_line import OrderLineModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def _with_details(self, stmt):
        return stmt.options(
            selectinload(OrderModel.lines),
            selectinload(OrderModel.employee),
        ).execution_options(populate_existing=True)

    # header and lines share one transaction, the service commits
    def add_header(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.flush()
        return order

    def add_lines(self, order: OrderModel, lines: Iterable[OrderLineModel]) -> None:
        for line in lines:
            line.order_id = order.id
            self.db.add(line)
        self.db.flush()

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()

    def get_order(self, order_id: int) -> OrderModel | None:
        stmt = self._with_details(select(OrderModel).where(OrderModel.id == order_id))
        return self.db.execute(stmt).scalar_one_or_none()

    def list_sent(self) -> List[OrderModel]:
        # a header without lines is never a real order
        stmt = self._with_details(
            select(OrderModel)
            .where(OrderModel.status == "sent", OrderModel.lines.any())
            .order_by(OrderModel.sent_at.asc(), OrderModel.id.asc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def list_completed(self, start: datetime, end: datetime) -> List[OrderModel]:
        stmt = self._with_details(
            select(OrderModel)
            .where(
                OrderModel.status == "completed",
                OrderModel.completed_at >= start,
                OrderModel.completed_at <= end,
            )
            .order_by(OrderModel.completed_at.desc(), OrderModel.id.desc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def sent_ids(self) -> Tuple[int, ...]:
        stmt = (
            select(OrderModel.id)
            .where(OrderModel.status == "sent", OrderModel.lines.any())
            .order_by(OrderModel.sent_at.asc(), OrderModel.id.asc())
        )
        return tuple(self.db.execute(stmt).scalars().all())

    def complete_if_sent(self, order_id: int, completed_at: datetime) -> int:
        """
        UPDATE orders SET status='completed', completed_at=:ts
        WHERE id=:id AND status='sent'

        Returns the rowcount, 0 means someone else got there first
        (or the order does not exist).
        """
        result = self.db.execute(
            update(OrderModel)
            .where(OrderModel.id == order_id, OrderModel.status == "sent")
            .values(status="completed", completed_at=completed_at)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def exists(self, order_id: int) -> bool:
        stmt = select(OrderModel.id).where(OrderModel.id == order_id)
        return self.db.execute(stmt).first() is not None
