from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import Boolean, Column, ForeignKey, Integer, String
from sqlalchemy import Enum as SAEnum
from typing import Optional

from crms.models.academic import Course, Semester
from crms.models.enums import DayOfWeek
from crms.models.resource import Lab, Room
from crms.models.user import User


class RoutineEntry(SQLModel, table=True):
    """
    One cell of the weekly routine: a (day, start time) bound to a course,
    teacher and room or lab of a semester, or a named break.
    """
    __tablename__ = "routine_entries"

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, primary_key=True, autoincrement=True)
    )

    department_id: int = Field(
        sa_column=Column(ForeignKey("departments.id"), nullable=False, index=True)
    )
    semester_id: int = Field(
        sa_column=Column(ForeignKey("semesters.id"), nullable=False, index=True)
    )

    day_of_week: DayOfWeek = Field(
        sa_column=Column(SAEnum(DayOfWeek, name="day_of_week"), nullable=False)
    )
    start_time: str = Field(sa_column=Column(String(5), nullable=False))  # "HH:MM"
    end_time: str = Field(sa_column=Column(String(5), nullable=False))

    course_id: Optional[int] = Field(default=None, sa_column=Column(ForeignKey("courses.id"), nullable=True))
    teacher_id: Optional[int] = Field(default=None, sa_column=Column(ForeignKey("users.id"), nullable=True))
    room_id: Optional[int] = Field(default=None, sa_column=Column(ForeignKey("rooms.id"), nullable=True))
    lab_id: Optional[int] = Field(default=None, sa_column=Column(ForeignKey("labs.id"), nullable=True))

    is_break: bool = Field(default=False, sa_column=Column(Boolean, nullable=False, default=False))
    break_name: Optional[str] = Field(default=None, sa_column=Column(String, nullable=True))
    is_canceled: bool = Field(default=False, sa_column=Column(Boolean, nullable=False, default=False))

    course: Optional[Course] = Relationship()
    teacher: Optional[User] = Relationship()
    room: Optional[Room] = Relationship()
    lab: Optional[Lab] = Relationship()
    semester: Optional[Semester] = Relationship()
