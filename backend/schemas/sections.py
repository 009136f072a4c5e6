from typing import Any, Dict, Optional

from .base import CamelModel


class SectionCreate(CamelModel):
    name: Optional[str] = None
    settings: Optional[Dict[str, Any]] = None


class SectionUpdate(CamelModel):
    name: Optional[str] = None
    settings: Optional[Dict[str, Any]] = None
