# crms/services/routine_service.py

import random
from typing import List, Optional

from loguru import logger
from sqlmodel import select
from sqlalchemy import delete, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from crms.core.constants import ROUTINE_DAYS
from crms.core.exceptions import ConflictError
from crms.models.academic import Course, Semester, SemesterCourseTeacher
from crms.models.department import Department
from crms.models.enums import DayOfWeek
from crms.models.resource import Lab, Room
from crms.models.routine import RoutineEntry
from crms.models.user import User, UserRole
from crms.schemas.routine import (
    PreviewRequest,
    RoutineEntryCreate,
    RoutineEntryDetail,
    RoutinePreview,
    SaveRoutineRequest,
    SemesterInfo,
    StudentInfo,
    StudentRoutine,
    TeacherInfo,
    TeacherRoutine,
    UnassignedCourse,
)
from crms.services.resource_service import available_pools
from crms.services.routine_generator import RoutineGenerator, blocks_for_course

# week order used for every routine listing
DAY_ORDER = {day: index for index, day in enumerate(list(ROUTINE_DAYS) + [
    d for d in DayOfWeek if d not in ROUTINE_DAYS
])}

# filterable dimension -> column
ENTRY_COLUMNS = {
    "room": RoutineEntry.room_id,
    "semester": RoutineEntry.semester_id,
    "teacher": RoutineEntry.teacher_id,
    "course": RoutineEntry.course_id,
    "lab": RoutineEntry.lab_id,
}


# ------------------------------------------------------------
# LOADING
# ------------------------------------------------------------
def _detail_query():
    return select(RoutineEntry).options(
        selectinload(RoutineEntry.course),
        selectinload(RoutineEntry.teacher),
        selectinload(RoutineEntry.room),
        selectinload(RoutineEntry.lab),
        selectinload(RoutineEntry.semester),
    )


def sort_entries(entries) -> list:
    """Week day order, then start time."""
    return sorted(entries, key=lambda e: (DAY_ORDER.get(DayOfWeek(e.day_of_week), len(DAY_ORDER)), e.start_time))


def to_details(entries) -> List[RoutineEntryDetail]:
    return [RoutineEntryDetail.model_validate(e) for e in entries]


async def load_entries(session: AsyncSession, *criteria) -> list[RoutineEntry]:
    result = await session.execute(_detail_query().where(*criteria))
    return sort_entries(result.scalars().all())


async def list_by(session: AsyncSession, dimension: str, value: int) -> List[RoutineEntryDetail]:
    column = ENTRY_COLUMNS[dimension]
    return to_details(await load_entries(session, column == value))


async def final_routine(session: AsyncSession, department_id: int) -> List[RoutineEntryDetail]:
    return to_details(await load_entries(session, RoutineEntry.department_id == department_id))


async def teacher_routine(session: AsyncSession, teacher_id: int) -> TeacherRoutine:
    teacher = await session.get(User, teacher_id)
    if not teacher:
        raise LookupError("Teacher not found.")

    department_name = None
    if teacher.department_id:
        department = await session.get(Department, teacher.department_id)
        department_name = department.name if department else None

    routine = to_details(await load_entries(session, RoutineEntry.teacher_id == teacher_id))
    return TeacherRoutine(routine=routine, teacher=TeacherInfo(name=teacher.name, department=department_name))


async def get_entry(session: AsyncSession, entry_id: int) -> RoutineEntry:
    entry = await session.get(RoutineEntry, entry_id)
    if not entry:
        raise LookupError("Schedule entry not found.")
    return entry


# ------------------------------------------------------------
# MANUAL ENTRIES
# ------------------------------------------------------------
def conflict_source(existing: RoutineEntry, data: RoutineEntryCreate) -> str:
    """Name of the busy resource; lab wins over room, room over teacher."""
    if data.lab_id is not None and existing.lab_id == data.lab_id:
        return "lab"
    if data.room_id is not None and existing.room_id == data.room_id:
        return "room"
    if data.teacher_id is not None and existing.teacher_id == data.teacher_id:
        return "teacher"
    return "semester"


async def find_conflict(session: AsyncSession, data: RoutineEntryCreate) -> Optional[RoutineEntry]:
    """
    An entry clashes when it shares day and start time with an existing one
    that uses the same teacher, room, lab or semester. Cancelled entries
    still hold their slot.
    """
    clashes = [RoutineEntry.semester_id == data.semester_id]
    if data.teacher_id is not None:
        clashes.append(RoutineEntry.teacher_id == data.teacher_id)
    if data.room_id is not None:
        clashes.append(RoutineEntry.room_id == data.room_id)
    if data.lab_id is not None:
        clashes.append(RoutineEntry.lab_id == data.lab_id)

    result = await session.execute(
        select(RoutineEntry)
        .where(
            RoutineEntry.day_of_week == data.day_of_week,
            RoutineEntry.start_time == data.start_time,
            or_(*clashes),
        )
        .order_by(RoutineEntry.id)
    )
    candidates = result.scalars().all()
    if not candidates:
        return None

    # report the most specific clash
    rank = {"lab": 0, "room": 1, "teacher": 2, "semester": 3}
    return min(candidates, key=lambda e: rank[conflict_source(e, data)])


def _check_times(data: RoutineEntryCreate) -> None:
    if data.end_time <= data.start_time:
        raise ValueError("endTime must be after startTime.")


# entry attribute -> (model, label used in the 404 message)
ENTRY_REFERENCES = {
    "course_id": (Course, "Course"),
    "teacher_id": (User, "Teacher"),
    "room_id": (Room, "Room"),
    "lab_id": (Lab, "Lab"),
}


async def check_references(session: AsyncSession, items: List[RoutineEntryCreate]) -> None:
    """Every course, teacher, room and lab named by the entries must exist."""
    for attr, (model, label) in ENTRY_REFERENCES.items():
        wanted = {getattr(item, attr) for item in items if getattr(item, attr) is not None}
        if not wanted:
            continue
        found = await session.execute(select(model.id).where(model.id.in_(wanted)))
        if wanted - set(found.scalars().all()):
            raise LookupError(f"{label} not found.")


async def check_semesters(session: AsyncSession, department_id: int, semester_ids) -> None:
    if not await session.get(Department, department_id):
        raise LookupError("Department not found.")

    result = await session.execute(select(Semester).where(Semester.id.in_(set(semester_ids))))
    semesters = result.scalars().all()
    if len(semesters) != len(set(semester_ids)):
        raise LookupError("Semester not found.")
    if any(s.department_id != department_id for s in semesters):
        raise ValueError("Semester does not belong to this department.")


async def add_entry(session: AsyncSession, data: RoutineEntryCreate) -> RoutineEntry:
    _check_times(data)
    await check_semesters(session, data.department_id, [data.semester_id])
    await check_references(session, [data])

    clash = await find_conflict(session, data)
    if clash:
        source = conflict_source(clash, data)
        raise ConflictError(f"Conflict found. The selected {source} is already busy at this time.")

    entry = RoutineEntry(**data.model_dump())
    session.add(entry)
    await session.commit()
    await session.refresh(entry)
    logger.info(
        f"Routine entry {entry.id}: {entry.day_of_week.value} {entry.start_time} "
        f"semester={entry.semester_id} course={entry.course_id}"
    )
    return entry


async def set_canceled(session: AsyncSession, entry_id: int, canceled: bool) -> RoutineEntry:
    entry = await get_entry(session, entry_id)
    entry.is_canceled = canceled
    session.add(entry)
    await session.commit()
    await session.refresh(entry)
    return entry


async def delete_entry(session: AsyncSession, entry_id: int) -> None:
    entry = await get_entry(session, entry_id)
    await session.delete(entry)
    await session.commit()


async def delete_department_entries(session: AsyncSession, department_id: int) -> int:
    result = await session.execute(delete(RoutineEntry).where(RoutineEntry.department_id == department_id))
    await session.commit()
    logger.warning(f"Deleted {result.rowcount} routine entries of department {department_id}")
    return result.rowcount


# ------------------------------------------------------------
# SAVE GENERATED ROUTINE
# ------------------------------------------------------------
async def save_routine(session: AsyncSession, data: SaveRoutineRequest) -> int:
    """
    Replaces the department's entries of the given semesters in one
    transaction. Entries must belong to that department and those semesters.
    """
    semester_ids = set(data.semester_ids)
    for item in data.routine:
        _check_times(item)
        if item.department_id != data.department_id or item.semester_id not in semester_ids:
            raise ValueError("Every routine entry must belong to the given department and semesters.")

    await check_semesters(session, data.department_id, semester_ids)
    await check_references(session, data.routine)

    try:
        await session.execute(
            delete(RoutineEntry).where(
                RoutineEntry.department_id == data.department_id,
                RoutineEntry.semester_id.in_(sorted(semester_ids)),
            )
        )
        session.add_all([RoutineEntry(**item.model_dump()) for item in data.routine])
        await session.commit()
    except Exception:
        await session.rollback()
        logger.exception(f"Saving routine for department {data.department_id} failed")
        raise

    logger.success(
        f"Saved {len(data.routine)} routine entries for department {data.department_id}, "
        f"semesters {sorted(semester_ids)}"
    )
    return len(data.routine)


# ------------------------------------------------------------
# STUDENT
# ------------------------------------------------------------
async def student_semester(session: AsyncSession, student: User) -> Optional[Semester]:
    result = await session.execute(
        select(Semester)
        .where(Semester.session == student.session, Semester.department_id == student.department_id)
        .order_by(Semester.id)
    )
    return result.scalars().first()


async def student_routine(session: AsyncSession, student_id: int) -> StudentRoutine:
    student = await session.get(User, student_id)
    if not student or student.role != UserRole.student:
        raise LookupError("Student not found.")
    if not student.session or not student.department_id:
        raise LookupError("Student is not assigned to a session or department.")

    info = StudentInfo(
        name=student.name,
        session=student.session,
        department_id=student.department_id,
        role=student.role.value,
    )

    semester = await student_semester(session, student)
    if not semester:
        return StudentRoutine(
            routine=[],
            student=info,
            semester=None,
            message="Could not determine your current semester schedule.",
        )

    routine = to_details(await load_entries(session, RoutineEntry.semester_id == semester.id))
    return StudentRoutine(
        routine=routine,
        student=info,
        semester=SemesterInfo(id=semester.id, name=semester.name, session=semester.session),
    )


# ------------------------------------------------------------
# ROLE-SPECIFIC GRID SOURCE
# ------------------------------------------------------------
async def entries_for_user(session: AsyncSession, user: User, department_id: Optional[int] = None) -> list[RoutineEntry]:
    """
    student: their semester's routine; teacher: what they teach;
    department admin: their department; super admin: the requested department.
    """
    if user.role == UserRole.student:
        if not user.session or not user.department_id:
            raise LookupError("Student is not assigned to a session or department.")
        semester = await student_semester(session, user)
        if not semester:
            return []
        return await load_entries(session, RoutineEntry.semester_id == semester.id)

    if user.role == UserRole.teacher:
        return await load_entries(session, RoutineEntry.teacher_id == user.id)

    if user.role == UserRole.department_admin:
        if not user.department_id:
            raise ValueError("Department admin must belong to a department.")
        return await load_entries(session, RoutineEntry.department_id == user.department_id)

    if department_id is None:
        raise ValueError("departmentId is required.")
    return await load_entries(session, RoutineEntry.department_id == department_id)


# ------------------------------------------------------------
# PREVIEW
# ------------------------------------------------------------
async def preview_routine(session: AsyncSession, data: PreviewRequest) -> RoutinePreview:
    result = await session.execute(
        select(SemesterCourseTeacher)
        .join(Course, Course.id == SemesterCourseTeacher.course_id)
        .where(SemesterCourseTeacher.semester_id.in_(data.semester_ids), Course.is_major.is_(True))
        .options(selectinload(SemesterCourseTeacher.course))
        .order_by(SemesterCourseTeacher.id)
    )
    pairs = result.scalars().all()
    if not pairs:
        raise LookupError("No major courses with assigned teachers found for the selected semesters.")

    room_ids, lab_ids = await available_pools(session, data.department_id)
    if not room_ids and not lab_ids:
        raise LookupError("No available rooms or labs found for this department.")

    blocks = []
    for pair in pairs:
        blocks.extend(blocks_for_course(pair.course, pair.teacher_id, pair.semester_id, data.department_id))

    generator = RoutineGenerator(room_ids, lab_ids, rng=random.Random(data.seed))
    generated = generator.generate(blocks)

    logger.info(
        f"Preview for department {data.department_id}: {len(generated.routine)} entries, "
        f"{len(generated.unassigned)} unassigned courses"
    )
    return RoutinePreview(
        routine=[RoutineEntryCreate(**item) for item in generated.routine],
        unassigned=[UnassignedCourse(**item) for item in generated.unassigned],
    )
