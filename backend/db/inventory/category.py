import uuid

from sqlalchemy import Column, ForeignKey, Integer, String

from ..database import Base


class Category(Base):
    """Grouping of items inside a section (e.g. "Red wine", "Leaf vegetables")."""
    __tablename__ = "categories"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    organization_id = Column(String, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    section_id = Column(String, ForeignKey("sections.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String, nullable=False)
    display_order = Column(Integer, nullable=False, default=0)

    @property
    def to_schema(self):
        return {
            "id": self.id,
            "organizationId": self.organization_id,
            "sectionId": self.section_id,
            "name": self.name,
            "displayOrder": self.display_order or 0,
        }
