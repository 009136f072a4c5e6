import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from ..database import Base


class PurchaseOrder(Base):
    __tablename__ = "purchase_orders"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    organization_id = Column(String, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    # Copied from the supplier when the order is created
    section_id = Column(String, ForeignKey("sections.id", ondelete="CASCADE"), nullable=False, index=True)
    supplier_id = Column(String, ForeignKey("suppliers.id", ondelete="CASCADE"), nullable=False, index=True)

    date = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    status = Column(Text, nullable=False, default="draft", index=True)  # draft|ordered|received

    total_amount = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    received_at = Column(DateTime(timezone=True), nullable=True)

    supplier = relationship("Supplier")
    items = relationship(
        "PurchaseItem",
        back_populates="purchase_order",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="PurchaseItem.created_at",
    )

    @property
    def to_schema(self):
        return {
            "id": self.id,
            "organizationId": self.organization_id,
            "sectionId": self.section_id,
            "supplierId": self.supplier_id,
            "date": self.date.isoformat() if self.date else None,
            "status": self.status,
            "totalAmount": self.total_amount or 0,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "receivedAt": self.received_at.isoformat() if self.received_at else None,
        }


class PurchaseItem(Base):
    __tablename__ = "purchase_items"
    __table_args__ = (
        UniqueConstraint("purchase_order_id", "item_id", name="ux_purchase_items_order_item"),
        CheckConstraint("quantity > 0", name="ck_purchase_items_quantity_positive"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    purchase_order_id = Column(String, ForeignKey("purchase_orders.id", ondelete="CASCADE"), nullable=False, index=True)
    item_id = Column(String, ForeignKey("items.id", ondelete="CASCADE"), nullable=False, index=True)

    quantity = Column(Float, nullable=False)  # ordered
    cost_price = Column(Integer, nullable=False, default=0)  # per unit

    # null until the delivery has been checked
    received_quantity = Column(Float, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    purchase_order = relationship("PurchaseOrder", back_populates="items")
    item = relationship("Item")

    @property
    def to_schema(self):
        return {
            "id": self.id,
            "purchaseOrderId": self.purchase_order_id,
            "itemId": self.item_id,
            "quantity": float(self.quantity),
            "costPrice": self.cost_price or 0,
            "receivedQuantity": float(self.received_quantity) if self.received_quantity is not None else None,
        }
