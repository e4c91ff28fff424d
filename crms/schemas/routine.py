from typing import Dict, List, Optional

from pydantic import Field, field_validator

from crms.core.validators import is_valid_time
from crms.models.enums import DayOfWeek
from crms.schemas.base import CamelModel


# -------------------------------------------------------------------
# ENTRY WRITE
# -------------------------------------------------------------------
class RoutineEntryCreate(CamelModel):
    department_id: int
    semester_id: int
    day_of_week: DayOfWeek
    start_time: str
    end_time: str
    course_id: Optional[int] = None
    teacher_id: Optional[int] = None
    room_id: Optional[int] = None
    lab_id: Optional[int] = None
    is_break: bool = False
    break_name: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def check_time(cls, value: str) -> str:
        if not is_valid_time(value):
            raise ValueError("time must be HH:MM")
        return value


# -------------------------------------------------------------------
# ENTRY READ
# -------------------------------------------------------------------
class RoutineEntryRead(CamelModel):
    id: int
    department_id: int
    semester_id: int
    day_of_week: DayOfWeek
    start_time: str
    end_time: str
    course_id: Optional[int] = None
    teacher_id: Optional[int] = None
    room_id: Optional[int] = None
    lab_id: Optional[int] = None
    is_break: bool = False
    break_name: Optional[str] = None
    is_canceled: bool = False


class CourseLabel(CamelModel):
    code: str
    name: str

class TeacherLabel(CamelModel):
    name: str

class RoomLabel(CamelModel):
    room_number: str

class LabLabel(CamelModel):
    lab_number: str

class SemesterLabel(CamelModel):
    shortname: Optional[str] = None


class RoutineEntryDetail(RoutineEntryRead):
    """Entry with the display fields of its course/teacher/room/lab/semester."""
    course: Optional[CourseLabel] = None
    teacher: Optional[TeacherLabel] = None
    room: Optional[RoomLabel] = None
    lab: Optional[LabLabel] = None
    semester: Optional[SemesterLabel] = None


# -------------------------------------------------------------------
# ROUTINE RESPONSES
# -------------------------------------------------------------------
class FinalRoutine(CamelModel):
    routine: List[RoutineEntryDetail] = []

class TeacherInfo(CamelModel):
    name: str
    department: Optional[str] = None

class TeacherRoutine(CamelModel):
    routine: List[RoutineEntryDetail] = []
    teacher: TeacherInfo

class StudentInfo(CamelModel):
    name: str
    session: Optional[str] = None
    department_id: Optional[int] = None
    role: str

class SemesterInfo(CamelModel):
    id: int
    name: str
    session: Optional[str] = None

class StudentRoutine(CamelModel):
    routine: List[RoutineEntryDetail] = []
    student: StudentInfo
    semester: Optional[SemesterInfo] = None
    message: Optional[str] = None


# -------------------------------------------------------------------
# SAVE / PREVIEW GENERATED ROUTINE
# -------------------------------------------------------------------
class SaveRoutineRequest(CamelModel):
    routine: List[RoutineEntryCreate]
    semester_ids: List[int] = Field(min_length=1)
    department_id: int

class PreviewRequest(CamelModel):
    department_id: int
    semester_ids: List[int] = Field(min_length=1)
    seed: Optional[int] = None

class UnassignedCourse(CamelModel):
    name: str
    code: str

class RoutinePreview(CamelModel):
    routine: List[RoutineEntryCreate] = []
    unassigned: List[UnassignedCourse] = []


# -------------------------------------------------------------------
# GRID (day rows x time-slot columns)
# -------------------------------------------------------------------
class GridCellEntry(CamelModel):
    id: Optional[int] = None
    text: str
    is_break: bool = False
    is_lab: bool = False
    is_canceled: bool = False

class GridCell(CamelModel):
    time: str
    entries: List[GridCellEntry] = []
    display: str

class GridRow(CamelModel):
    day: DayOfWeek
    label: str
    cells: List[GridCell] = []

class RoutineGrid(CamelModel):
    headers: List[str] = []
    rows: List[GridRow] = []
    filters: Dict[str, int] = {}
    total_entries: int = 0
    outside: List[int] = []
