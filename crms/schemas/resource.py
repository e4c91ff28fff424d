from typing import Optional

from pydantic import Field

from crms.models.enums import ResourceStatus
from crms.schemas.base import CamelModel


# --- ROOM ---
class RoomCreate(CamelModel):
    room_number: str
    capacity: Optional[int] = Field(default=None, gt=0)
    department_id: int

class RoomRead(CamelModel):
    id: int
    room_number: str
    capacity: Optional[int] = None
    department_id: int
    status: ResourceStatus
    department_acronym: Optional[str] = None


# --- LAB ---
class LabCreate(CamelModel):
    name: Optional[str] = None
    lab_number: str
    capacity: Optional[int] = Field(default=None, gt=0)
    department_id: int

class LabRead(CamelModel):
    id: int
    name: Optional[str] = None
    lab_number: str
    capacity: Optional[int] = None
    department_id: int
    status: ResourceStatus
    department_acronym: Optional[str] = None


# --- UPDATES (rooms and labs alike) ---
class StatusUpdate(CamelModel):
    status: ResourceStatus

class CapacityUpdate(CamelModel):
    capacity: int = Field(gt=0)
