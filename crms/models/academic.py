from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import Boolean, Column, Float, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy import Enum as SAEnum
from typing import Optional

from crms.models.enums import CourseType
from crms.models.user import User


# ------------------------------------------------------------
# 1. SEMESTER <-> COURSE (many-to-many link)
# ------------------------------------------------------------
class SemesterCourse(SQLModel, table=True):
    __tablename__ = "semester_courses"

    semester_id: int = Field(foreign_key="semesters.id", primary_key=True)
    course_id: int = Field(foreign_key="courses.id", primary_key=True)


# ------------------------------------------------------------
# 2. COURSE
# ------------------------------------------------------------
class Course(SQLModel, table=True):
    __tablename__ = "courses"

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, primary_key=True, autoincrement=True)
    )
    name: str = Field(sa_column=Column(String, nullable=False))
    code: str = Field(sa_column=Column(String, nullable=False, index=True))
    credits: float = Field(default=3.0, sa_column=Column(Float, nullable=False, default=3.0))

    type: CourseType = Field(
        default=CourseType.THEORY,
        sa_column=Column(SAEnum(CourseType, name="course_type"), nullable=False)
    )
    is_major: bool = Field(default=True, sa_column=Column(Boolean, nullable=False, default=True))

    # offering department
    department_id: int = Field(
        sa_column=Column(ForeignKey("departments.id"), nullable=False, index=True)
    )
    # department whose students take the course
    for_dept: int = Field(
        sa_column=Column(ForeignKey("departments.id"), nullable=False, index=True)
    )

    # default teacher, independent of any semester
    teacher_id: Optional[int] = Field(
        default=None,
        sa_column=Column(ForeignKey("users.id"), nullable=True)
    )
    is_archived: bool = Field(default=False, sa_column=Column(Boolean, nullable=False, default=False))

    teacher: Optional[User] = Relationship()


# ------------------------------------------------------------
# 3. SEMESTER
# ------------------------------------------------------------
class Semester(SQLModel, table=True):
    __tablename__ = "semesters"

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, primary_key=True, autoincrement=True)
    )
    name: str = Field(sa_column=Column(String, nullable=False))
    shortname: Optional[str] = Field(default=None, sa_column=Column(String, nullable=True))

    # e.g. "2021-2022"; students are matched to a semester through it
    session: Optional[str] = Field(default=None, sa_column=Column(String, nullable=True))

    department_id: int = Field(
        sa_column=Column(ForeignKey("departments.id"), nullable=False, index=True)
    )
    is_archived: bool = Field(default=False, sa_column=Column(Boolean, nullable=False, default=False))


# ------------------------------------------------------------
# 4. WHO TEACHES A COURSE IN A GIVEN SEMESTER
# ------------------------------------------------------------
class SemesterCourseTeacher(SQLModel, table=True):
    __tablename__ = "semester_course_teachers"
    __table_args__ = (UniqueConstraint("semester_id", "course_id", name="uq_semester_course"),)

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, primary_key=True, autoincrement=True)
    )
    semester_id: int = Field(sa_column=Column(ForeignKey("semesters.id"), nullable=False))
    course_id: int = Field(sa_column=Column(ForeignKey("courses.id"), nullable=False))
    teacher_id: int = Field(sa_column=Column(ForeignKey("users.id"), nullable=False))

    course: Optional[Course] = Relationship()
    teacher: Optional[User] = Relationship()
