from typing import Optional

from pydantic import field_validator

from .base import CamelModel


def _non_negative(v: Optional[float]) -> Optional[float]:
    if v is not None and v < 0:
        raise ValueError("must be >= 0")
    return v


class ItemCreate(CamelModel):
    # Required, but checked in the handler so a missing field is a plain 400
    name: Optional[str] = None
    organization_id: Optional[str] = None
    section_id: Optional[str] = None

    sub_name: Optional[str] = None
    vintage: Optional[int] = None
    quantity: Optional[float] = None
    unit: Optional[str] = None
    last_cost_price: Optional[int] = None
    min_stock_level: Optional[float] = None
    category_id: Optional[str] = None
    supplier_id: Optional[str] = None

    @field_validator("quantity", "last_cost_price", "min_stock_level")
    @classmethod
    def _amounts(cls, v):
        return _non_negative(v)

    @field_validator("name", "unit", "sub_name")
    @classmethod
    def _strip_nullable(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


class ItemUpdate(CamelModel):
    """
    Partial update. Only keys present in the body are applied.

    name, quantity, unit, lastCostPrice and minStockLevel always hold a value,
    so an explicit null for any of them is rejected. subName, vintage,
    categoryId and supplierId are optional on the item and null clears them.
    Unknown keys (e.g. organizationId) are ignored.
    """
    name: Optional[str] = None
    sub_name: Optional[str] = None
    vintage: Optional[int] = None
    quantity: Optional[float] = None
    unit: Optional[str] = None
    last_cost_price: Optional[int] = None
    min_stock_level: Optional[float] = None
    category_id: Optional[str] = None
    supplier_id: Optional[str] = None

    # Validators only run for keys that were sent, so None here is an explicit null
    @field_validator("quantity", "last_cost_price", "min_stock_level")
    @classmethod
    def _required_amount(cls, v):
        if v is None:
            raise ValueError("cannot be null")
        return _non_negative(v)

    @field_validator("name", "unit")
    @classmethod
    def _required_text(cls, v: Optional[str]) -> str:
        if v is None:
            raise ValueError("cannot be null")
        v = v.strip()
        if not v:
            raise ValueError("cannot be empty")
        return v

    @field_validator("sub_name")
    @classmethod
    def _strip_sub_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None


class StocktakeCreate(CamelModel):
    name: Optional[str] = None
    organization_id: Optional[str] = None
    section_id: Optional[str] = None


class StocktakeCount(CamelModel):
    actual_quantity: float

    @field_validator("actual_quantity")
    @classmethod
    def _actual(cls, v: float) -> float:
        if v < 0:
            raise ValueError("actualQuantity must be >= 0")
        return v
