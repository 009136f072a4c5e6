"""Import every ORM model so Base.metadata knows all tables."""
from .users import User, UserPreference
from .organization import Organization, Member
from .section import Section
from .inventory.category import Category
from .inventory.supplier import Supplier
from .inventory.item import Item
from .inventory.stocktake import StocktakeSession, StocktakeRecord
from .inventory.purchase import PurchaseOrder, PurchaseItem

__all__ = [
    "User",
    "UserPreference",
    "Organization",
    "Member",
    "Section",
    "Category",
    "Supplier",
    "Item",
    "StocktakeSession",
    "StocktakeRecord",
    "PurchaseOrder",
    "PurchaseItem",
]
