import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from ..database import Base


class Item(Base):
    __tablename__ = "items"
    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_items_quantity_non_negative"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))

    # organization_id is denormalized from the section so that authorization
    # can be decided from the item row alone
    organization_id = Column(String, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    section_id = Column(String, ForeignKey("sections.id", ondelete="CASCADE"), nullable=False, index=True)

    # Both must live in the item's section
    category_id = Column(String, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True)
    supplier_id = Column(String, ForeignKey("suppliers.id", ondelete="SET NULL"), nullable=True, index=True)

    name = Column(String, nullable=False)
    sub_name = Column(String, nullable=True)  # short name used on the floor
    vintage = Column(Integer, nullable=True)  # wine year, null for everything else
    quantity = Column(Float, nullable=False, default=0)
    unit = Column(Text, nullable=False, default="pc")  # pc|kg|btl|...

    last_cost_price = Column(Integer, nullable=False, default=0)  # unit price of the last received purchase
    min_stock_level = Column(Float, nullable=False, default=0)

    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    section = relationship("Section", back_populates="items")
    category = relationship("Category")
    supplier = relationship("Supplier")

    @property
    def to_schema(self):
        return {
            "id": self.id,
            "organizationId": self.organization_id,
            "sectionId": self.section_id,
            "categoryId": self.category_id,
            "supplierId": self.supplier_id,
            "name": self.name,
            "subName": self.sub_name,
            "vintage": self.vintage,
            "quantity": float(self.quantity) if self.quantity is not None else 0.0,
            "unit": self.unit,
            "lastCostPrice": self.last_cost_price or 0,
            "minStockLevel": float(self.min_stock_level) if self.min_stock_level is not None else 0.0,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
