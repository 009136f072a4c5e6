from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, JSON, String
from sqlalchemy.orm import relationship

from .database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """Identity record; the primary key is the identity provider's subject id (uid)."""
    __tablename__ = "users"

    id = Column(String, primary_key=True)
    email = Column(String, nullable=False, unique=True, index=True)
    display_name = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    memberships = relationship("Member", back_populates="user", cascade="all, delete-orphan")

    @property
    def to_schema(self):
        return {
            "id": self.id,
            "email": self.email,
            "displayName": self.display_name,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }


class UserPreference(Base):
    """Last active organization/section and UI view state, one row per user."""
    __tablename__ = "user_preferences"

    # No FK to users: a preference may be written before the stub user row exists
    user_id = Column(String, primary_key=True)
    language = Column(String, nullable=True, default="ja")

    # Free-form client state, not validated against organizations/sections
    active_organization_id = Column(String, nullable=True)
    active_section_id = Column(String, nullable=True)
    last_view_state = Column(JSON, nullable=True)

    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    @property
    def to_schema(self):
        return {
            "activeOrganizationId": self.active_organization_id,
            "activeSectionId": self.active_section_id,
            "language": self.language,
            "lastViewState": self.last_view_state,
        }
