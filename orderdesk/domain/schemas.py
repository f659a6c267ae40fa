# orderdesk/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict, field_validator, computed_field
from typing import Any, Dict, List, Literal
from decimal import Decimal
from datetime import datetime

from orderdesk.domain.quantity import Quantity, UnitKind, normalize_unit, render_label


class Product(BaseModel):
    """Product as served by the catalog (read-only for the pipeline)."""

    id: str
    name: str
    units: List[UnitKind] = Field(default_factory=lambda: ["count"])
    location: str | None = None
    status: Literal["pending", "complete"] = "complete"

    model_config = ConfigDict(frozen=True)

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, value):
        return str(value)

    @field_validator("units", mode="before")
    @classmethod
    def _normalize_units(cls, value):
        # catalog sends either a single legacy name or a list
        if value is None or value == []:
            return ["count"]
        if isinstance(value, str):
            value = [value]
        return [normalize_unit(v) for v in value]


class CartLine(BaseModel):
    """One product entry of the in-progress cart, also the draft record."""

    product: Product
    quantity: Quantity
    note: str | None = None
    ready: bool = False

    @property
    def unit(self) -> str:
        return self.quantity.kind

    @property
    def label(self) -> str:
        return render_label(self.product.name, self.quantity, self.note)


class LineIn(BaseModel):
    """Schema for adding or editing a cart line."""

    product_id: str | None = Field(None, description="Required when adding")
    unit: str = Field(..., min_length=1, description="count, weight, volume, box or bag")
    quantity: Dict[str, Any] = Field(default_factory=dict, description="Raw operator input")
    note: str | None = Field(None, max_length=200)


class StepIn(BaseModel):
    delta: Literal[-1, 1]


class CustomerIn(BaseModel):
    customer_name: str = Field("", max_length=100)


class CartLineOut(BaseModel):
    index: int
    product_id: str
    product_name: str
    location: str | None
    unit: str
    quantity: Quantity
    note: str | None
    ready: bool
    label: str


class LocationGroupOut(BaseModel):
    location: str | None
    indexes: List[int]


class CartOut(BaseModel):
    """Schema for a station cart (response)."""

    station: str
    customer_name: str
    lines: List[CartLineOut]
    groups: List[LocationGroupOut]
    ready_count: int
    total_count: int
    progress: float
    diagnostics: List[str] = Field(default_factory=list)


class OrderLineOut(BaseModel):
    id: int
    product_id: str | None
    product_name: str
    unit: str
    quantity: int
    weight: Decimal | None = None
    volume: Decimal | None = None
    boxes: int | None = None
    fraction: Decimal | None = None
    extra_units: int | None = None
    box_detail: str | None = None
    notes: str | None = None
    label: str

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    """Schema for a queued order (response)."""

    id: int
    customer_name: str
    employee_id: str | None
    employee_name: str | None = None
    status: str
    sent_at: datetime | None
    completed_at: datetime | None
    lines: List[OrderLineOut]

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def line_count(self) -> int:
        return len(self.lines)


class EmployeeRead(BaseModel):
    """Schema for an employee (response)."""

    id: str
    name: str
    role: str

    model_config = ConfigDict(from_attributes=True)
