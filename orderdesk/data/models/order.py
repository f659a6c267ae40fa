from sqlalchemy import Column, Integer, ForeignKey, String, DateTime
from sqlalchemy.orm import relationship
from datetime import datetime, timezone

from orderdesk.data.database import Base

class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    customer_name = Column(String, nullable=False)
    employee_id = Column(String(36), ForeignKey("employees.id", ondelete="SET NULL"), nullable=True)

    status = Column(String(20), nullable=False, default="sent", index=True)  # draft, sent, completed
    sent_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    lines = relationship(
        "OrderLineModel",
        back_populates="order",
        order_by="OrderLineModel.position",
    )
    employee = relationship("EmployeeModel")
