# crms/services/semester_service.py

import csv
import io
from typing import List

from loguru import logger
from sqlmodel import select
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from crms.core.validators import is_non_empty, is_valid_session
from crms.models.academic import Course, Semester, SemesterCourse, SemesterCourseTeacher
from crms.models.department import Department
from crms.models.routine import RoutineEntry
from crms.models.user import User, UserRole
from crms.schemas.academic import (
    AssignmentBrief,
    SemesterCourseWithTeacher,
    SemesterCreate,
    SemesterCsvImportResult,
    SemesterWithCourses,
    TeacherName,
)
from crms.services.course_service import to_course_read


async def get_semester(session: AsyncSession, semester_id: int) -> Semester:
    semester = await session.get(Semester, semester_id)
    if not semester:
        raise LookupError("Semester not found.")
    return semester


# ------------------------------------------------------------
# CREATE
# ------------------------------------------------------------
async def create_semester(session: AsyncSession, data: SemesterCreate, actor: User) -> Semester:
    if not is_non_empty(data.name) or not is_non_empty(data.session):
        raise ValueError("All fields are required.")
    if not is_valid_session(data.session):
        raise ValueError("Session must be in the format YYYY-YYYY.")

    if actor.role != UserRole.super_admin:
        if not actor.department_id:
            raise PermissionError("Department admin must belong to a department.")
        if actor.department_id != data.department_id:
            raise PermissionError("You can only add semesters to your own department.")

    if not await session.get(Department, data.department_id):
        raise LookupError("Department not found.")

    semester = Semester(
        name=data.name.strip(),
        shortname=data.shortname,
        session=data.session,
        department_id=data.department_id,
    )
    session.add(semester)
    await session.commit()
    await session.refresh(semester)
    logger.info(f"Created semester {semester.name} ({semester.session}) in department {semester.department_id}")
    return semester


async def list_semesters(session: AsyncSession, department_id: int | None = None) -> list[Semester]:
    query = select(Semester).order_by(Semester.id)
    if department_id is not None:
        query = query.where(Semester.department_id == department_id)
    result = await session.execute(query)
    return result.scalars().all()


# ------------------------------------------------------------
# DELETE / ARCHIVE / SESSION
# ------------------------------------------------------------
async def delete_semester(session: AsyncSession, semester_id: int) -> None:
    """Removes teacher assignments, routine entries and course links first."""
    semester = await get_semester(session, semester_id)

    await session.execute(delete(SemesterCourseTeacher).where(SemesterCourseTeacher.semester_id == semester_id))
    await session.execute(delete(RoutineEntry).where(RoutineEntry.semester_id == semester_id))
    await session.execute(delete(SemesterCourse).where(SemesterCourse.semester_id == semester_id))
    await session.delete(semester)
    await session.commit()
    logger.warning(f"Deleted semester {semester_id} and its routine")


async def set_archived(session: AsyncSession, semester_id: int, archived: bool) -> Semester:
    semester = await get_semester(session, semester_id)
    semester.is_archived = archived
    session.add(semester)
    await session.commit()
    await session.refresh(semester)
    return semester


async def set_session(session: AsyncSession, semester_id: int, academic_session: str) -> Semester:
    if not is_valid_session(academic_session):
        raise ValueError("Session must be in the format YYYY-YYYY.")
    semester = await get_semester(session, semester_id)
    semester.session = academic_session
    session.add(semester)
    await session.commit()
    await session.refresh(semester)
    return semester


# ------------------------------------------------------------
# COURSES OF A SEMESTER
# ------------------------------------------------------------
async def _linked_course_ids(session: AsyncSession, semester_id: int) -> set:
    result = await session.execute(
        select(SemesterCourse.course_id).where(SemesterCourse.semester_id == semester_id)
    )
    return set(result.scalars().all())


async def semester_with_courses(session: AsyncSession, semester: Semester) -> SemesterWithCourses:
    result = await session.execute(
        select(Course)
        .join(SemesterCourse, SemesterCourse.course_id == Course.id)
        .where(SemesterCourse.semester_id == semester.id)
        .options(selectinload(Course.teacher))
        .order_by(Course.name)
    )
    courses = [to_course_read(c) for c in result.scalars().all()]
    return SemesterWithCourses.model_validate(semester).model_copy(update={"courses": courses})


async def add_courses(session: AsyncSession, semester_id: int, course_ids: List[int]) -> SemesterWithCourses:
    if not course_ids:
        raise ValueError("semesterId and at least one courseId are required.")

    semester = await get_semester(session, semester_id)

    found = set((await session.execute(select(Course.id).where(Course.id.in_(course_ids)))).scalars().all())
    missing = [cid for cid in course_ids if cid not in found]
    if missing:
        raise LookupError(f"Course(s) not found: {', '.join(str(m) for m in missing)}")

    linked = await _linked_course_ids(session, semester_id)
    for course_id in dict.fromkeys(course_ids):
        if course_id not in linked:
            session.add(SemesterCourse(semester_id=semester_id, course_id=course_id))

    await session.commit()
    return await semester_with_courses(session, semester)


async def add_courses_from_csv(session: AsyncSession, semester_id: int, content: bytes) -> SemesterCsvImportResult:
    """
    Links the semester's department courses listed in a `code` column.
    Codes that match no course of that department are reported back.
    """
    semester = await get_semester(session, semester_id)

    reader = csv.DictReader(io.StringIO(content.decode("utf-8-sig")))
    if not reader.fieldnames or "code" not in reader.fieldnames:
        raise ValueError("CSV file must have a 'code' column.")

    codes = []
    for row in reader:
        code = (row.get("code") or "").strip()
        if code and code not in codes:
            codes.append(code)
    if not codes:
        raise ValueError("CSV file contains no course codes.")

    result = await session.execute(
        select(Course).where(Course.department_id == semester.department_id, Course.code.in_(codes))
    )
    by_code = {c.code: c for c in result.scalars().all()}

    linked = await _linked_course_ids(session, semester_id)
    added, unknown = [], []
    for code in codes:
        course = by_code.get(code)
        if not course:
            unknown.append(code)
            continue
        if course.id not in linked:
            session.add(SemesterCourse(semester_id=semester_id, course_id=course.id))
            linked.add(course.id)
        added.append(code)

    await session.commit()
    logger.info(f"Semester {semester_id}: linked {len(added)} courses from CSV, {len(unknown)} unknown codes")
    return SemesterCsvImportResult(added=added, unknown=unknown)


async def remove_course(session: AsyncSession, semester_id: int, course_id: int) -> None:
    link = await session.get(SemesterCourse, (semester_id, course_id))
    if not link:
        raise LookupError("Course is not part of this semester.")
    await session.delete(link)
    await session.commit()


# ------------------------------------------------------------
# TEACHER PER SEMESTER COURSE
# ------------------------------------------------------------
async def assign_semester_teacher(
    session: AsyncSession, semester_id: int, course_id: int, teacher_id: int
) -> SemesterCourseTeacher:
    """Replaces any previous assignment of the course in that semester."""
    await get_semester(session, semester_id)
    if not await session.get(Course, course_id):
        raise LookupError("Course not found.")
    teacher = await session.get(User, teacher_id)
    if not teacher or teacher.role != UserRole.teacher:
        raise ValueError("Teacher not found.")

    await session.execute(
        delete(SemesterCourseTeacher).where(
            SemesterCourseTeacher.semester_id == semester_id,
            SemesterCourseTeacher.course_id == course_id,
        )
    )
    assignment = SemesterCourseTeacher(semester_id=semester_id, course_id=course_id, teacher_id=teacher_id)
    session.add(assignment)
    await session.commit()
    await session.refresh(assignment)
    logger.info(f"Semester {semester_id}: course {course_id} taught by {teacher_id}")
    return assignment


async def semester_courses_with_teachers(session: AsyncSession, semester_id: int) -> list[SemesterCourseWithTeacher]:
    """Courses of the semester sorted by name, each with its assignment for that semester."""
    result = await session.execute(
        select(Course)
        .join(SemesterCourse, SemesterCourse.course_id == Course.id)
        .where(SemesterCourse.semester_id == semester_id)
        .options(selectinload(Course.teacher))
        .order_by(Course.name)
    )
    courses = result.scalars().all()

    assignments = await session.execute(
        select(SemesterCourseTeacher)
        .where(SemesterCourseTeacher.semester_id == semester_id)
        .options(selectinload(SemesterCourseTeacher.teacher))
    )
    by_course = {}
    for a in assignments.scalars().all():
        by_course.setdefault(a.course_id, []).append(
            AssignmentBrief(teacher_id=a.teacher_id, teacher=TeacherName(name=a.teacher.name) if a.teacher else None)
        )

    return [
        SemesterCourseWithTeacher(
            **to_course_read(c).model_dump(),
            semester_course_teachers=by_course.get(c.id, []),
        )
        for c in courses
    ]
