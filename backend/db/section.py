import uuid

from sqlalchemy import Column, ForeignKey, JSON, String
from sqlalchemy.orm import relationship

from .database import Base


class Section(Base):
    """A department inside an organization (e.g. "Bar", "Wine Cellar"). Items always belong to one."""
    __tablename__ = "sections"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    organization_id = Column(String, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)

    # UI switches, e.g. {"showVintage": true, "showSupplier": false}
    settings = Column(JSON, nullable=False, default=dict)

    organization = relationship("Organization", back_populates="sections")
    items = relationship("Item", back_populates="section", cascade="all, delete-orphan", passive_deletes=True)

    @property
    def to_schema(self):
        return {
            "id": self.id,
            "organizationId": self.organization_id,
            "name": self.name,
            "settings": self.settings or {},
        }
