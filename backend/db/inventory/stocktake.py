import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Float, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from ..database import Base


class StocktakeSession(Base):
    __tablename__ = "stocktake_sessions"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    organization_id = Column(String, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    section_id = Column(String, ForeignKey("sections.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String, nullable=False)
    status = Column(Text, nullable=False, default="open", index=True)  # open|closed

    started_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    closed_at = Column(DateTime(timezone=True), nullable=True)

    records = relationship(
        "StocktakeRecord",
        back_populates="session",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="StocktakeRecord.updated_at",
    )

    @property
    def to_schema(self):
        return {
            "id": self.id,
            "organizationId": self.organization_id,
            "sectionId": self.section_id,
            "name": self.name,
            "status": self.status,
            "startedAt": self.started_at.isoformat() if self.started_at else None,
            "closedAt": self.closed_at.isoformat() if self.closed_at else None,
        }


class StocktakeRecord(Base):
    __tablename__ = "stocktake_records"
    __table_args__ = (
        UniqueConstraint("session_id", "item_id", name="ux_stocktake_records_session_item"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    session_id = Column(String, ForeignKey("stocktake_sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    item_id = Column(String, ForeignKey("items.id", ondelete="CASCADE"), nullable=False, index=True)

    # Theoretical stock at the time the item was first counted
    expected_quantity = Column(Float, nullable=False)
    actual_quantity = Column(Float, nullable=False)

    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    session = relationship("StocktakeSession", back_populates="records")
    item = relationship("Item")

    @property
    def to_schema(self):
        expected = float(self.expected_quantity)
        actual = float(self.actual_quantity)
        return {
            "id": self.id,
            "sessionId": self.session_id,
            "itemId": self.item_id,
            "expectedQuantity": expected,
            "actualQuantity": actual,
            "diffQuantity": actual - expected,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
