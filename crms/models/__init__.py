from crms.models.department import Department
from crms.models.user import User, UserRole
from crms.models.resource import Room, Lab
from crms.models.academic import Course, Semester, SemesterCourse, SemesterCourseTeacher
from crms.models.routine import RoutineEntry
from crms.models.audit import AuditLog

__all__ = [
    "Department",
    "User",
    "UserRole",
    "Room",
    "Lab",
    "Course",
    "Semester",
    "SemesterCourse",
    "SemesterCourseTeacher",
    "RoutineEntry",
    "AuditLog",
]
