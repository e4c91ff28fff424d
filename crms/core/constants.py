# crms/core/constants.py

from crms.models.enums import DayOfWeek

# ==========================================================
# ACCESSES (named permissions gating the management panels)
# ==========================================================
ACCESS_MANAGE_ROOM = "manageRoom"
ACCESS_MANAGE_LAB = "manageLab"
ACCESS_MANAGE_ACCESS = "manageAccess"
ACCESS_MANAGE_COURSE = "manageCourse"
ACCESS_MANAGE_SEMESTER = "manageSemester"
ACCESS_MANAGE_ROUTINE = "manageRoutine"
ACCESS_MANAGE_TEACHER = "manageTeacher"
ACCESS_MANAGE_STUDENT = "manageStudent"
ACCESS_MANAGE_DEPARTMENT = "manageDepartment"
ACCESS_MANAGE_USERS = "manageUsers"

GRANTABLE_ACCESSES = [
    ACCESS_MANAGE_ROOM,
    ACCESS_MANAGE_LAB,
    ACCESS_MANAGE_ACCESS,
    ACCESS_MANAGE_COURSE,
    ACCESS_MANAGE_SEMESTER,
    ACCESS_MANAGE_ROUTINE,
    ACCESS_MANAGE_TEACHER,
    ACCESS_MANAGE_STUDENT,
    ACCESS_MANAGE_DEPARTMENT,
    ACCESS_MANAGE_USERS,
]

# ==========================================================
# SEMESTERS CREATED WITH EVERY NEW DEPARTMENT
# ==========================================================
DEFAULT_SEMESTERS = [
    ("1st year 1st semester", "1-1"),
    ("1st year 2nd semester", "1-2"),
    ("2nd year 1st semester", "2-1"),
    ("2nd year 2nd semester", "2-2"),
    ("3rd year 1st semester", "3-1"),
    ("3rd year 2nd semester", "3-2"),
    ("4th year 1st semester", "4-1"),
    ("4th year 2nd semester", "4-2"),
]

# ==========================================================
# ROUTINE WEEK
# ==========================================================
ROUTINE_DAYS = [
    DayOfWeek.SUNDAY,
    DayOfWeek.MONDAY,
    DayOfWeek.TUESDAY,
    DayOfWeek.WEDNESDAY,
    DayOfWeek.THURSDAY,
]

TIME_SLOTS = [
    "08:00", "09:00", "10:00", "11:00", "12:00",
    "13:00", "14:00", "15:00", "16:00",
]

# Slots kept free for non-major (inter-departmental) courses.
NON_MAJOR_COURSE_SLOTS = {
    DayOfWeek.SUNDAY: ["13:00", "14:00"],
    DayOfWeek.TUESDAY: ["13:00", "14:00"],
}

EMPTY_CELL = "-"
