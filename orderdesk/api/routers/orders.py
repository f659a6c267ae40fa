# orderdesk/api/routers/orders.py
from datetime import date
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from orderdesk.api.dependencies import get_feed
from orderdesk.data.database import get_db
from orderdesk.domain.errors import ConflictOnComplete, OrderNotFound
from orderdesk.domain.schemas import OrderOut
from orderdesk.services.order_feed import OrderFeed
from orderdesk.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(db: Session, feed: OrderFeed | None = None):
    return OrderService(db, feed=feed)


@router.get("/sent", response_model=List[OrderOut])
def list_sent(db: Session = Depends(get_db)):
    """
    Orders waiting at the register, oldest first.
    """
    return get_service(db).list_sent()


@router.get("/history", response_model=List[OrderOut])
def list_history(
    day: date | None = Query(None, description="Any day of the week, default today"),
    db: Session = Depends(get_db),
):
    """
    Completed orders of one week (Monday to Saturday), newest first.
    """
    return get_service(db).list_completed_week(day or date.today())


@router.get("/{order_id}", response_model=OrderOut)
def get_order(order_id: int, db: Session = Depends(get_db)):
    try:
        return get_service(db).get_order(order_id)
    except OrderNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/{order_id}/complete", response_model=OrderOut)
def complete_order(
    order_id: int,
    db: Session = Depends(get_db),
    feed: OrderFeed = Depends(get_feed),
):
    """
    Marks a sent order as completed. 409 means another register was faster,
    the client should just refresh its list.
    """
    svc = get_service(db, feed)
    try:
        return svc.complete(order_id)
    except OrderNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ConflictOnComplete as e:
        raise HTTPException(status_code=409, detail=str(e))
