from typing import Optional

from crms.schemas.base import CamelModel


class DepartmentCreate(CamelModel):
    name: str
    acronym: Optional[str] = None


class DepartmentRead(CamelModel):
    id: int
    name: str
    acronym: Optional[str] = None
