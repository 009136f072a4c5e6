from typing import Optional

from .base import CamelModel


class OrganizationCreate(CamelModel):
    name: Optional[str] = None
