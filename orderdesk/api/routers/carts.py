# orderdesk/api/routers/carts.py
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import ValidationError as PydanticValidationError
from requests import RequestException
from sqlalchemy.orm import Session

from orderdesk.api.dependencies import get_catalog, get_feed, get_sessions
from orderdesk.data.database import get_db
from orderdesk.domain.errors import NotReady, StaleLineIndex, SubmissionPartialFailure, ValidationError
from orderdesk.domain.schemas import CartOut, CustomerIn, LineIn, OrderOut, StepIn
from orderdesk.services.cart_service import CartSessions
from orderdesk.services.catalog_client import CatalogClient
from orderdesk.services.order_feed import OrderFeed
from orderdesk.services.order_service import OrderService

router = APIRouter(prefix="/stations/{station}/cart", tags=["carts"])


@router.get("", response_model=CartOut)
def get_cart(station: str, sessions: CartSessions = Depends(get_sessions)):
    return sessions.get(station).snapshot()


@router.put("/customer", response_model=CartOut)
def set_customer(
    station: str,
    payload: CustomerIn,
    sessions: CartSessions = Depends(get_sessions),
):
    cart = sessions.get(station)
    cart.set_customer_name(payload.customer_name)
    return cart.snapshot()


@router.post("/lines", response_model=CartOut, status_code=201)
def add_line(
    station: str,
    payload: LineIn,
    sessions: CartSessions = Depends(get_sessions),
    catalog: CatalogClient = Depends(get_catalog),
):
    if not payload.product_id:
        raise HTTPException(status_code=400, detail="product_id is required")

    try:
        product = catalog.fetch_product(payload.product_id)
    except RequestException as e:
        raise HTTPException(status_code=502, detail=f"Catalog unavailable: {e}")
    except PydanticValidationError as e:
        # catalog answered with a product this pipeline cannot sell
        raise HTTPException(status_code=502, detail=f"Catalog sent an invalid product: {e.error_count()} error(s)")

    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    cart = sessions.get(station)
    try:
        cart.add_line(product, payload.unit, payload.quantity, payload.note)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return cart.snapshot()


@router.put("/lines/{index}", response_model=CartOut)
def edit_line(
    station: str,
    index: int,
    payload: LineIn,
    sessions: CartSessions = Depends(get_sessions),
):
    cart = sessions.get(station)
    try:
        cart.edit_line(index, payload.unit, payload.quantity, payload.note)
    except StaleLineIndex as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return cart.snapshot()


@router.post("/lines/{index}/step", response_model=CartOut)
def step_line(
    station: str,
    index: int,
    payload: StepIn,
    sessions: CartSessions = Depends(get_sessions),
):
    cart = sessions.get(station)
    try:
        cart.step_quantity(index, payload.delta)
    except StaleLineIndex as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return cart.snapshot()


@router.post("/lines/{index}/toggle", response_model=CartOut)
def toggle_line(
    station: str,
    index: int,
    sessions: CartSessions = Depends(get_sessions),
):
    cart = sessions.get(station)
    try:
        cart.toggle_ready(index)
    except StaleLineIndex as e:
        raise HTTPException(status_code=404, detail=str(e))
    return cart.snapshot()


@router.delete("/lines/{index}", response_model=CartOut)
def remove_line(
    station: str,
    index: int,
    sessions: CartSessions = Depends(get_sessions),
):
    cart = sessions.get(station)
    try:
        cart.remove_line(index)
    except StaleLineIndex as e:
        raise HTTPException(status_code=404, detail=str(e))
    return cart.snapshot()


@router.delete("", response_model=CartOut)
def clear_cart(station: str, sessions: CartSessions = Depends(get_sessions)):
    cart = sessions.get(station)
    cart.clear()
    return cart.snapshot()


@router.post("/submit", response_model=OrderOut, status_code=201)
def submit_cart(
    station: str,
    employee_id: str = Query(...),
    db: Session = Depends(get_db),
    sessions: CartSessions = Depends(get_sessions),
    feed: OrderFeed = Depends(get_feed),
):
    """
    Sends the station cart to the register queue.
    On failure the cart is kept as it was, the operator retries.
    """
    svc = OrderService(db, feed=feed)
    try:
        return svc.submit_cart(sessions.get(station), employee_id)
    except NotReady as e:
        raise HTTPException(status_code=400, detail=str(e))
    except SubmissionPartialFailure as e:
        raise HTTPException(status_code=503, detail=str(e))
