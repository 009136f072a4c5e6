from datetime import datetime
from typing import List, Optional

from pydantic import field_validator

from .base import CamelModel


class CategoryCreate(CamelModel):
    name: Optional[str] = None
    organization_id: Optional[str] = None
    section_id: Optional[str] = None
    display_order: int = 0


class CategoryUpdate(CamelModel):
    name: Optional[str] = None
    display_order: Optional[int] = None


class SupplierCreate(CamelModel):
    name: Optional[str] = None
    organization_id: Optional[str] = None
    section_id: Optional[str] = None
    contact_info: Optional[str] = None


class SupplierUpdate(CamelModel):
    name: Optional[str] = None
    contact_info: Optional[str] = None


class PurchaseLineUpdate(CamelModel):
    quantity: float
    cost_price: int = 0

    @field_validator("quantity")
    @classmethod
    def _quantity(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("quantity must be > 0")
        return v

    @field_validator("cost_price")
    @classmethod
    def _cost_price(cls, v: int) -> int:
        if v < 0:
            raise ValueError("costPrice must be >= 0")
        return v


class PurchaseLine(PurchaseLineUpdate):
    item_id: str


class PurchaseOrderCreate(CamelModel):
    supplier_id: Optional[str] = None
    date: Optional[datetime] = None
    items: List[PurchaseLine] = []


class ReceivedLine(CamelModel):
    item_id: str
    received_quantity: float

    @field_validator("received_quantity")
    @classmethod
    def _received(cls, v: float) -> float:
        if v < 0:
            raise ValueError("receivedQuantity must be >= 0")
        return v


class PurchaseReceive(CamelModel):
    """Counted delivery. Lines left out are taken as received in full."""
    items: List[ReceivedLine] = []
