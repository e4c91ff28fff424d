from typing import List, Optional

from pydantic import Field

from crms.models.enums import CourseType
from crms.schemas.base import CamelModel


# --- COURSE ---
class CourseCreate(CamelModel):
    name: str
    code: str
    credits: float = Field(default=3.0, gt=0)
    department_id: int
    is_major: bool
    for_dept: int
    type: CourseType = CourseType.THEORY

class CourseRead(CamelModel):
    id: int
    name: str
    code: str
    credits: float
    type: CourseType
    is_major: bool
    department_id: int
    for_dept: int
    teacher_id: Optional[int] = None
    teacher_name: Optional[str] = None
    is_archived: bool = False

class CourseIdRequest(CamelModel):
    course_id: int

class AssignTeacherRequest(CamelModel):
    course_id: int
    teacher_id: int

class CsvRowError(CamelModel):
    row: int
    error: str

class CourseCsvImportResult(CamelModel):
    created: int
    errors: List[CsvRowError] = []


# --- SEMESTER ---
class SemesterCreate(CamelModel):
    name: str
    session: str
    department_id: int
    shortname: Optional[str] = None

class SemesterRead(CamelModel):
    id: int
    name: str
    shortname: Optional[str] = None
    session: Optional[str] = None
    department_id: int
    is_archived: bool = False

class SemesterWithCourses(SemesterRead):
    courses: List[CourseRead] = []

class SetSessionRequest(CamelModel):
    semester_id: int
    session: str

class SemesterCoursesAdd(CamelModel):
    semester_id: int
    course_ids: List[int] = []
    course_id: Optional[int] = None

class SemesterCsvImportResult(CamelModel):
    added: List[str] = []
    unknown: List[str] = []


# --- WHO TEACHES WHAT, PER SEMESTER ---
class SemesterCourseTeacherCreate(CamelModel):
    semester_id: int
    course_id: int
    teacher_id: int

class SemesterCourseTeacherRead(CamelModel):
    id: int
    semester_id: int
    course_id: int
    teacher_id: int

class AssignmentResponse(CamelModel):
    message: str = "Teacher assigned to course successfully."
    assignment: SemesterCourseTeacherRead

class TeacherName(CamelModel):
    name: str

class AssignmentBrief(CamelModel):
    teacher_id: int
    teacher: Optional[TeacherName] = None

class SemesterCourseWithTeacher(CourseRead):
    semester_course_teachers: List[AssignmentBrief] = []

class StudentCourses(CamelModel):
    courses: List[CourseRead] = []
