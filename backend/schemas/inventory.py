import math
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

DEFAULT_QUANTITY = 0
DEFAULT_LOW_STOCK_THRESHOLD = 10
CENT = Decimal("0.01")


def _finite_int(v: Any, default: int) -> int:
    # Form fields arrive as numbers, numeric strings, blanks or NaN/Infinity
    if v is None or isinstance(v, bool):
        return default
    if isinstance(v, str) and not v.strip():
        return default
    try:
        f = float(v)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(f):
        return default
    return int(f)


def _optional_text(v: Any) -> Optional[str]:
    if v is None:
        return None
    v = str(v).strip()
    return v or None


def round_price(v: Any) -> Optional[Decimal]:
    """Parse a monetary value and round it half-up to cents. Blank -> None."""
    if v is None:
        return None
    if isinstance(v, str):
        v = v.strip()
        if not v:
            return None
    try:
        d = Decimal(str(v))
    except (InvalidOperation, ValueError):
        raise ValueError("unit_price must be a number")
    if not d.is_finite():
        raise ValueError("unit_price must be a finite number")
    return d.quantize(CENT, rounding=ROUND_HALF_UP)


class InventoryItemCreate(BaseModel):
    # name is checked by the access layer so the error is a 400 with a readable message
    name: str = ""
    description: Optional[str] = None
    sku: Optional[str] = None
    category: Optional[str] = None
    quantity: int = DEFAULT_QUANTITY
    unit_price: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=2)
    low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, v: Any) -> str:
        if v is None:
            return ""
        return str(v).strip()

    @field_validator("description", "sku", "category", mode="before")
    @classmethod
    def _strip_nullable(cls, v: Any) -> Optional[str]:
        return _optional_text(v)

    @field_validator("quantity", mode="before")
    @classmethod
    def _quantity(cls, v: Any) -> int:
        return max(0, _finite_int(v, DEFAULT_QUANTITY))

    @field_validator("low_stock_threshold", mode="before")
    @classmethod
    def _threshold(cls, v: Any) -> int:
        return _finite_int(v, DEFAULT_LOW_STOCK_THRESHOLD)

    @field_validator("unit_price", mode="before")
    @classmethod
    def _price(cls, v: Any) -> Optional[Decimal]:
        return round_price(v)


class InventoryItemUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    sku: Optional[str] = None
    category: Optional[str] = None
    quantity: Optional[int] = Field(default=None, ge=0)
    unit_price: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=2)
    low_stock_threshold: Optional[int] = None

    # blank names are rejected by the access layer, same as on create
    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        return str(v).strip()

    @field_validator("description", "sku", "category", mode="before")
    @classmethod
    def _strip_nullable(cls, v: Any) -> Optional[str]:
        return _optional_text(v)

    @field_validator("unit_price", mode="before")
    @classmethod
    def _price(cls, v: Any) -> Optional[Decimal]:
        return round_price(v)


class QuantityUpdate(BaseModel):
    quantity: int


class QuantityAdjust(BaseModel):
    delta: int = Field(..., description="Signed change, e.g. 1 or -1")


class InventoryItemRead(BaseModel):
    id: UUID
    owner_id: UUID
    name: str
    description: Optional[str] = None
    sku: Optional[str] = None
    category: Optional[str] = None
    quantity: int
    unit_price: Optional[float] = None
    low_stock_threshold: Optional[int] = None
    low_stock: bool
    created_at: datetime
    updated_at: datetime


class InventorySummary(BaseModel):
    item_count: int
    total_units: int
    total_value: float
    low_stock_count: int
    categories: list[str]
