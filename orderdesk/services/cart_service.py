# orderdesk/services/cart_service.py
import threading
from typing import Any, Callable, Dict, List, Mapping, Tuple

from orderdesk.domain.errors import PersistenceError, StaleLineIndex, ValidationError
from orderdesk.domain.quantity import CountQuantity, encode_quantity
from orderdesk.domain.schemas import CartLine, CartLineOut, CartOut, LocationGroupOut, Product
from orderdesk.services.draft_store import DraftStore
from orderdesk.utils.logging import get_logger

logger = get_logger(__name__)


class CartService:
    """
    In-memory cart of one authoring station (single writer).

    commands (add, edit, step, remove, toggle, customer, clear) change the
    cart and mirror it to the draft store right away
    queries (snapshot, grouping, progress) only read

    Draft writes are best effort: a failing store never fails the command,
    the problem is logged and kept in `diagnostics` for the operator.
    """

    def __init__(self, station: str, draft_store: DraftStore):
        self.station = station
        self.draft_store = draft_store
        self._lines: List[CartLine] = []
        self.customer_name = ""
        self.diagnostics: List[str] = []

    # queries
    @property
    def lines(self) -> Tuple[CartLine, ...]:
        return tuple(self._lines)

    @property
    def total_count(self) -> int:
        return len(self._lines)

    @property
    def ready_count(self) -> int:
        return sum(1 for line in self._lines if line.ready)

    @property
    def progress_fraction(self) -> float:
        if not self._lines:
            return 0.0
        return self.ready_count / self.total_count

    @property
    def all_ready(self) -> bool:
        return bool(self._lines) and self.ready_count == self.total_count

    def grouped_by_location(self) -> List[Tuple[str | None, List[Tuple[int, CartLine]]]]:
        """
        Lines grouped by the product's storage location for picking.
        Locations alphabetically, lines without a location last.
        Indexes are the canonical (insertion order) ones.
        """
        groups: Dict[str | None, List[Tuple[int, CartLine]]] = {}
        for index, line in enumerate(self._lines):
            groups.setdefault(line.product.location or None, []).append((index, line))

        named = sorted((loc for loc in groups if loc is not None), key=str.casefold)
        ordered = [(loc, groups[loc]) for loc in named]
        if None in groups:
            ordered.append((None, groups[None]))
        return ordered

    def snapshot(self) -> CartOut:
        return CartOut(
            station=self.station,
            customer_name=self.customer_name,
            lines=[
                CartLineOut(
                    index=index,
                    product_id=line.product.id,
                    product_name=line.product.name,
                    location=line.product.location,
                    unit=line.unit,
                    quantity=line.quantity,
                    note=line.note,
                    ready=line.ready,
                    label=line.label,
                )
                for index, line in enumerate(self._lines)
            ],
            groups=[
                LocationGroupOut(location=loc, indexes=[i for i, _ in members])
                for loc, members in self.grouped_by_location()
            ],
            ready_count=self.ready_count,
            total_count=self.total_count,
            progress=self.progress_fraction,
            diagnostics=list(self.diagnostics),
        )

    # commands
    def restore(self) -> None:
        """Rehydrates the cart from the draft store at session start."""
        draft = self.draft_store.load()
        # customer name lives in its own slot, a broken line draft does not lose it
        self.customer_name = draft.customer_name
        self._lines = list(draft.lines)
        for problem in draft.problems:
            self._record(problem)

        logger.info(
            f"Station {self.station} restored {len(self._lines)} draft line(s), "
            f"customer {self.customer_name!r}"
        )

    def set_customer_name(self, name: str) -> None:
        self.customer_name = name or ""
        self._persist_customer()

    def add_line(
        self,
        product: Product,
        unit: str,
        quantity_input: Mapping[str, Any] | None = None,
        note: str | None = None,
    ) -> CartLine:
        line = self._build_line(product, unit, quantity_input, note)
        self._lines.append(line)

        logger.info(f"Station {self.station}: added {line.label!r} at {len(self._lines) - 1}")
        self._persist_lines()
        return line

    def edit_line(
        self,
        index: int,
        unit: str,
        quantity_input: Mapping[str, Any] | None = None,
        note: str | None = None,
    ) -> CartLine:
        current = self._line_at(index)
        # edit keeps progress
        line = self._build_line(current.product, unit, quantity_input, note, ready=current.ready)
        self._lines[index] = line

        logger.info(f"Station {self.station}: line {index} is now {line.label!r}")
        self._persist_lines()
        return line

    def step_quantity(self, index: int, delta: int) -> CartLine:
        current = self._line_at(index)
        if not isinstance(current.quantity, CountQuantity):
            raise ValidationError("Only count lines can be stepped")

        quantity = current.quantity.increment() if delta > 0 else current.quantity.decrement()
        if quantity == current.quantity:
            # below 1 is a no-op
            return current

        line = current.model_copy(update={"quantity": quantity})
        self._lines[index] = line
        self._persist_lines()
        return line

    def remove_line(self, index: int) -> CartLine:
        line = self._line_at(index)
        del self._lines[index]

        logger.info(f"Station {self.station}: removed line {index} ({line.label!r})")
        self._persist_lines()
        return line

    def toggle_ready(self, index: int) -> CartLine:
        current = self._line_at(index)
        line = current.model_copy(update={"ready": not current.ready})
        self._lines[index] = line
        self._persist_lines()
        return line

    def clear(self) -> None:
        self._lines = []
        self.customer_name = ""

        logger.info(f"Station {self.station}: cart cleared")
        try:
            self.draft_store.clear()
        except PersistenceError as e:
            self._record(e)

    # helpers
    def _build_line(
        self,
        product: Product,
        unit: str,
        quantity_input: Mapping[str, Any] | None,
        note: str | None,
        ready: bool = False,
    ) -> CartLine:
        quantity = encode_quantity(unit, quantity_input)
        if quantity.kind not in product.units:
            raise ValidationError(
                f"{product.name} is not sold by {quantity.kind} (only {', '.join(product.units)})"
            )

        note = (note or "").strip() or None
        return CartLine(product=product, quantity=quantity, note=note, ready=ready)

    def _line_at(self, index: int) -> CartLine:
        if index < 0 or index >= len(self._lines):
            raise StaleLineIndex(f"No line {index} in cart of station {self.station}")
        return self._lines[index]

    def _persist_lines(self) -> None:
        try:
            self.draft_store.save(self._lines)
        except PersistenceError as e:
            self._record(e)

    def _persist_customer(self) -> None:
        try:
            self.draft_store.save_customer(self.customer_name)
        except PersistenceError as e:
            self._record(e)

    def _record(self, error: PersistenceError) -> None:
        logger.error(f"Station {self.station} draft problem: {error}")
        self.diagnostics.append(str(error))


class CartSessions:
    """
    One cart per station, created and restored from its draft on first use.
    """

    def __init__(self, store_factory: Callable[[str], DraftStore] = DraftStore):
        self.store_factory = store_factory
        self._carts: Dict[str, CartService] = {}
        self._lock = threading.Lock()

    def get(self, station: str) -> CartService:
        with self._lock:
            cart = self._carts.get(station)
            if cart is None:
                cart = CartService(station, self.store_factory(station))
                cart.restore()
                self._carts[station] = cart
            return cart
