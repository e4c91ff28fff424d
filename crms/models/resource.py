from sqlmodel import SQLModel, Field
from sqlalchemy import Column, ForeignKey, Integer, String
from sqlalchemy import Enum as SAEnum
from typing import Optional

from crms.models.enums import ResourceStatus


# ------------------------------------------------------------
# 1. ROOM (theory classes)
# ------------------------------------------------------------
class Room(SQLModel, table=True):
    __tablename__ = "rooms"

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, primary_key=True, autoincrement=True)
    )

    room_number: str = Field(sa_column=Column(String, nullable=False))
    capacity: Optional[int] = Field(default=None, sa_column=Column(Integer, nullable=True))

    department_id: int = Field(
        sa_column=Column(ForeignKey("departments.id"), nullable=False, index=True)
    )

    status: ResourceStatus = Field(
        default=ResourceStatus.AVAILABLE,
        sa_column=Column(SAEnum(ResourceStatus, name="room_status"), nullable=False)
    )


# ------------------------------------------------------------
# 2. LAB (practical classes)
# ------------------------------------------------------------
class Lab(SQLModel, table=True):
    __tablename__ = "labs"

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, primary_key=True, autoincrement=True)
    )

    name: Optional[str] = Field(default=None, sa_column=Column(String, nullable=True))
    lab_number: str = Field(sa_column=Column(String, nullable=False))
    capacity: Optional[int] = Field(default=None, sa_column=Column(Integer, nullable=True))

    department_id: int = Field(
        sa_column=Column(ForeignKey("departments.id"), nullable=False, index=True)
    )

    status: ResourceStatus = Field(
        default=ResourceStatus.AVAILABLE,
        sa_column=Column(SAEnum(ResourceStatus, name="lab_status"), nullable=False)
    )
