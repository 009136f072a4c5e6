from typing import Any, Dict, Optional

from .base import CamelModel


class UserUpdate(CamelModel):
    display_name: Optional[str] = None


class UserStateUpdate(CamelModel):
    language: Optional[str] = None
    active_organization_id: Optional[str] = None
    active_section_id: Optional[str] = None
    last_view_state: Optional[Dict[str, Any]] = None
