import uuid

from sqlalchemy import Column, ForeignKey, String, Text

from ..database import Base


class Supplier(Base):
    __tablename__ = "suppliers"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    organization_id = Column(String, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    section_id = Column(String, ForeignKey("sections.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String, nullable=False)
    contact_info = Column(Text, nullable=True)  # phone number or email

    @property
    def to_schema(self):
        return {
            "id": self.id,
            "organizationId": self.organization_id,
            "sectionId": self.section_id,
            "name": self.name,
            "contactInfo": self.contact_info,
        }
