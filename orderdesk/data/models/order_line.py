from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Numeric
from sqlalchemy.orm import relationship
from datetime import datetime, timezone

from orderdesk.data.database import Base


class OrderLineModel(Base):
    __tablename__ = "order_lines"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)

    # no FK, the catalog may delete the product, the name stays as it was sent
    product_id = Column(String(36), nullable=True)
    product_name = Column(String, nullable=False)

    unit = Column(String(10), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    weight = Column(Numeric(10, 3), nullable=True)
    volume = Column(Numeric(10, 3), nullable=True)
    boxes = Column(Integer, nullable=True)
    fraction = Column(Numeric(3, 2), nullable=True)
    extra_units = Column(Integer, nullable=True)
    box_detail = Column(String, nullable=True)
    notes = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    order = relationship("OrderModel", back_populates="lines")
