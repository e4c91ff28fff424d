# crms/models/user.py

from sqlmodel import SQLModel, Field, Column
from sqlalchemy import DateTime, ForeignKey, Integer, String, JSON
from sqlalchemy import Enum as SAEnum
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

class UserRole(str, Enum):
    super_admin = "super_admin"
    department_admin = "department_admin"
    teacher = "teacher"
    student = "student"

class User(SQLModel, table=True):
    __tablename__ = "users"

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, primary_key=True, autoincrement=True)
    )

    name: str = Field(nullable=False)
    email: str = Field(nullable=False, index=True, unique=True)
    password_hash: str = Field(nullable=False)

    role: UserRole = Field(
        sa_column=Column(SAEnum(UserRole, name="user_role"), nullable=False)
    )

    # every role except super_admin belongs to a department
    department_id: Optional[int] = Field(
        default=None,
        sa_column=Column(ForeignKey("departments.id"), nullable=True)
    )

    # academic session of a student, e.g. "2021-2022"
    session: Optional[str] = Field(
        default=None,
        sa_column=Column(String, nullable=True)
    )

    reg_no: Optional[str] = Field(default=None, sa_column=Column(String, nullable=True))
    mobile: Optional[str] = Field(default=None, sa_column=Column(String, nullable=True))

    # granted access names, see crms.core.constants.GRANTABLE_ACCESSES
    accesses: List[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False, default=list)
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
