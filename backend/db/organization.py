import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from .database import Base


class Organization(Base):
    """Tenancy root. Owns sections, items, stocktakes and memberships."""
    __tablename__ = "organizations"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)
    plan = Column(Text, nullable=False, default="free")  # free|pro|enterprise
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    members = relationship("Member", back_populates="organization", cascade="all, delete-orphan", passive_deletes=True)
    sections = relationship("Section", back_populates="organization", cascade="all, delete-orphan", passive_deletes=True)

    @property
    def to_schema(self):
        return {
            "id": self.id,
            "name": self.name,
            "plan": self.plan,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


class Member(Base):
    """
    Membership of a user in an organization.

    The existence of a row for (organization_id, user_id) is what grants
    access to everything the organization owns. `role` is recorded but
    not checked by any endpoint yet.
    """
    __tablename__ = "members"
    __table_args__ = (
        UniqueConstraint("organization_id", "user_id", name="ux_members_organization_user"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    organization_id = Column(String, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    role = Column(Text, nullable=False, default="member")  # owner|admin|member
    joined_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    organization = relationship("Organization", back_populates="members")
    user = relationship("User", back_populates="memberships")
