# orderdesk/domain/quantity.py
"""
Quantity encoding for cart lines.

A product is sold by one or more unit kinds, the operator picks one per
line and the quantity payload depends only on that kind:

- count:   whole units, floor of 1
- weight:  optional kilograms (can be filled in later at the register)
- volume:  liters
- box/bag: whole containers + a fraction (½ or ¼) + loose extra units

The structured payload is what gets stored, the label is only rendered
from it and never parsed back.
"""
from decimal import Decimal
from typing import Annotated, Any, Dict, Literal, Mapping, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError

from orderdesk.domain.errors import ValidationError

UnitKind = Literal["count", "weight", "volume", "box", "bag"]

UNIT_KINDS = ("count", "weight", "volume", "box", "bag")
CONTAINER_KINDS = ("box", "bag")

# legacy unit names still used by the catalog
UNIT_ALIASES = {
    "unidad": "count",
    "kg": "weight",
    "litro": "volume",
    "caja": "box",
    "funda": "bag",
}

CONTAINER_LABELS = {
    "box": ("caja", "cajas"),
    "bag": ("funda", "fundas"),
}

HALF = Decimal("0.5")
QUARTER = Decimal("0.25")
FRACTION_SYMBOLS = {HALF: "½", QUARTER: "¼"}
_FRACTION_INPUTS = {
    "½": HALF,
    "1/2": HALF,
    "¼": QUARTER,
    "1/4": QUARTER,
}


def normalize_unit(kind: str) -> str:
    value = (kind or "").strip().lower()
    value = UNIT_ALIASES.get(value, value)
    if value not in UNIT_KINDS:
        raise ValidationError(f"Unknown unit kind: {kind!r}")
    return value


def format_decimal(value: Decimal) -> str:
    # 1.250 -> "1.25", 10 -> "10" (normalize alone gives 1E+1)
    return format(value.normalize(), "f")


def _operator_decimal(value: Any) -> Any:
    # operators type "1,25" as often as "1.25", blank means not set
    if isinstance(value, str):
        value = value.strip().replace(",", ".")
        if not value:
            return None
    return value


class CountQuantity(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["count"] = "count"
    quantity: int = Field(1, ge=1)

    def increment(self) -> "CountQuantity":
        return self.model_copy(update={"quantity": self.quantity + 1})

    def decrement(self) -> "CountQuantity":
        if self.quantity <= 1:
            return self
        return self.model_copy(update={"quantity": self.quantity - 1})


class WeightQuantity(BaseModel):
    """Weight may stay unset until the register weighs the goods."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["weight"] = "weight"
    # same precision as order_lines.weight/volume (Numeric(10, 3))
    weight: Annotated[Decimal, Field(gt=0, max_digits=10, decimal_places=3)] | None = None

    @field_validator("weight", mode="before")
    @classmethod
    def _parse_weight(cls, value):
        return _operator_decimal(value)


class VolumeQuantity(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["volume"] = "volume"
    volume: Annotated[Decimal, Field(ge=0, max_digits=10, decimal_places=3)] | None = None

    @field_validator("volume", mode="before")
    @classmethod
    def _parse_volume(cls, value):
        return _operator_decimal(value)


class ContainerQuantity(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["box", "bag"]
    whole: int = Field(0, ge=0)
    fraction: Decimal = Decimal("0")
    extra_units: int = Field(0, ge=0)

    @field_validator("fraction", mode="before")
    @classmethod
    def _parse_fraction(cls, value):
        if value is None:
            return Decimal("0")
        if isinstance(value, str):
            text = value.strip()
            if text in _FRACTION_INPUTS:
                return _FRACTION_INPUTS[text]
            return _operator_decimal(text) or Decimal("0")
        return value

    @field_validator("fraction")
    @classmethod
    def _check_fraction(cls, value: Decimal) -> Decimal:
        if value != 0 and value not in FRACTION_SYMBOLS:
            raise ValueError("fraction must be 0, 1/2 or 1/4")
        return value

    @property
    def total(self) -> Decimal:
        return self.whole + self.fraction

    @property
    def is_empty(self) -> bool:
        return self.total == 0 and self.extra_units == 0


Quantity = Annotated[
    Union[CountQuantity, WeightQuantity, VolumeQuantity, ContainerQuantity],
    Field(discriminator="kind"),
]

_quantity_adapter = TypeAdapter(Quantity)


def _describe(error: PydanticValidationError) -> str:
    first = error.errors()[0]
    where = ".".join(str(p) for p in first.get("loc", ()) if p not in UNIT_KINDS)
    return f"{where}: {first['msg']}" if where else first["msg"]


def encode_quantity(kind: str, raw: Mapping[str, Any] | None = None) -> Quantity:
    """
    Turns the selected unit kind and raw operator input into a payload.

    Fields that do not belong to the selected kind are ignored.
    Raises ValidationError when the input cannot make a valid line.
    """
    unit = normalize_unit(kind)

    payload = {k: v for k, v in (raw or {}).items() if k != "kind"}
    payload["kind"] = unit

    try:
        quantity = _quantity_adapter.validate_python(payload)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid {unit} quantity - {_describe(e)}") from e

    if isinstance(quantity, ContainerQuantity) and quantity.is_empty:
        raise ValidationError("Select a quantity")

    return quantity


def container_detail(quantity: ContainerQuantity) -> str:
    """Renders e.g. "2 y ½ cajas + 3u". Empty string means nothing selected."""
    singular, plural = CONTAINER_LABELS[quantity.kind]
    parts = []

    if quantity.total > 0:
        label = singular if quantity.whole == 1 and quantity.fraction == 0 else plural

        if quantity.fraction:
            symbol = FRACTION_SYMBOLS[quantity.fraction]
            if quantity.whole == 0:
                parts.append(f"{symbol} {singular}")
            else:
                parts.append(f"{quantity.whole} y {symbol} {label}")
        else:
            parts.append(f"{quantity.whole} {label}")

    if quantity.extra_units > 0:
        parts.append(f"{quantity.extra_units}u")

    return " + ".join(parts)


def render_label(name: str, quantity: Quantity, note: str | None = None) -> str:
    if isinstance(quantity, CountQuantity):
        return f"{quantity.quantity}x {name}"

    if isinstance(quantity, WeightQuantity):
        # for weighed goods the note is the approximate piece ("½ horma")
        label = name
        if note:
            label += f" ({note})"
        if quantity.weight is not None:
            label += f" - {format_decimal(quantity.weight)}kg"
        return label

    if isinstance(quantity, VolumeQuantity):
        return f"{name} - {format_decimal(quantity.volume or Decimal('0'))}L"

    detail = container_detail(quantity)
    return f"{name} - {detail}" if detail else name


def quantity_columns(quantity: Quantity) -> Dict[str, Any]:
    """Flat column values for an order line."""
    columns = {
        "unit": quantity.kind,
        "quantity": 1,
        "weight": None,
        "volume": None,
        "boxes": None,
        "fraction": None,
        "extra_units": None,
        "box_detail": None,
    }

    if isinstance(quantity, CountQuantity):
        columns["quantity"] = quantity.quantity
    elif isinstance(quantity, WeightQuantity):
        columns["weight"] = quantity.weight
    elif isinstance(quantity, VolumeQuantity):
        columns["volume"] = quantity.volume
    else:
        columns["boxes"] = quantity.whole
        columns["fraction"] = quantity.fraction
        columns["extra_units"] = quantity.extra_units
        columns["box_detail"] = container_detail(quantity)

    return columns


def quantity_from_columns(row: Any) -> Quantity:
    """Inverse of quantity_columns, reads attributes of an order line row."""
    unit = row.unit
    if unit == "count":
        return CountQuantity(quantity=row.quantity)
    if unit == "weight":
        return WeightQuantity(weight=row.weight)
    if unit == "volume":
        return VolumeQuantity(volume=row.volume)
    return ContainerQuantity(
        kind=unit,
        whole=row.boxes or 0,
        fraction=row.fraction if row.fraction is not None else Decimal("0"),
        extra_units=row.extra_units or 0,
    )
