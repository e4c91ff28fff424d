# crms/services/course_service.py

import csv
import io
from typing import List

from loguru import logger
from sqlmodel import select
from sqlalchemy import delete, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from crms.models.academic import Course, Semester, SemesterCourse, SemesterCourseTeacher
from crms.models.department import Department
from crms.models.enums import CourseType
from crms.models.routine import RoutineEntry
from crms.models.user import User, UserRole
from crms.schemas.academic import CourseCreate, CourseCsvImportResult, CourseRead, CsvRowError

CSV_TRUE = {"true", "1", "yes", "y"}
CSV_FALSE = {"false", "0", "no", "n"}


def to_course_read(course: Course) -> CourseRead:
    """Needs course.teacher loaded (selectinload) when a teacher is set."""
    teacher = course.teacher if course.teacher_id else None
    return CourseRead.model_validate(course).model_copy(
        update={"teacher_name": teacher.name if teacher else None}
    )


async def _require_department(session: AsyncSession, department_id: int) -> None:
    if not await session.get(Department, department_id):
        raise LookupError(f"Department {department_id} not found.")


async def get_course(session: AsyncSession, course_id: int) -> Course:
    course = await session.get(Course, course_id)
    if not course:
        raise LookupError("Course not found.")
    return course


# ------------------------------------------------------------
# CREATE
# ------------------------------------------------------------
async def create_course(session: AsyncSession, data: CourseCreate) -> Course:
    if not data.name.strip() or not data.code.strip():
        raise ValueError("name, code, and departmentId are required.")

    await _require_department(session, data.department_id)
    await _require_department(session, data.for_dept)

    course = Course(
        name=data.name.strip(),
        code=data.code.strip(),
        credits=data.credits,
        type=data.type,
        is_major=data.is_major,
        department_id=data.department_id,
        for_dept=data.for_dept,
    )
    session.add(course)
    await session.commit()
    await session.refresh(course)
    logger.info(f"Created course {course.code} (id={course.id})")
    return course


def _parse_bool(value: str) -> bool:
    value = (value or "").strip().lower()
    if value in CSV_TRUE:
        return True
    if value in CSV_FALSE:
        return False
    raise ValueError(f"isMajor must be true or false, got '{value}'")


def _course_from_row(row: dict, department_id: int) -> CourseCreate:
    name = (row.get("name") or "").strip()
    code = (row.get("code") or "").strip()
    if not name or not code:
        raise ValueError("name and code are required")

    credits_raw = (row.get("credits") or "").strip()
    type_raw = (row.get("type") or CourseType.THEORY.value).strip().upper()
    for_dept_raw = (row.get("forDept") or "").strip()

    try:
        course_type = CourseType(type_raw)
    except ValueError:
        raise ValueError(f"type must be THEORY or LAB, got '{type_raw}'")

    try:
        credits = float(credits_raw) if credits_raw else 3.0
        for_dept = int(for_dept_raw) if for_dept_raw else department_id
    except ValueError:
        raise ValueError("credits and forDept must be numbers")

    return CourseCreate(
        name=name,
        code=code,
        credits=credits,
        type=course_type,
        is_major=_parse_bool(row.get("isMajor", "true")),
        department_id=department_id,
        for_dept=for_dept,
    )


async def import_courses_csv(session: AsyncSession, content: bytes, department_id: int) -> CourseCsvImportResult:
    """
    Columns: name, code, credits, type, isMajor, forDept.
    Valid rows are created; invalid rows are reported by 1-based data row.
    """
    await _require_department(session, department_id)

    text = content.decode("utf-8-sig")
    reader = csv.DictReader(io.StringIO(text))

    known_departments = set((await session.execute(select(Department.id))).scalars().all())
    created = 0
    errors: List[CsvRowError] = []

    for index, row in enumerate(reader, start=1):
        try:
            data = _course_from_row(row, department_id)
            if data.for_dept not in known_departments:
                raise ValueError(f"forDept {data.for_dept} does not exist")
        except ValueError as e:
            errors.append(CsvRowError(row=index, error=str(e)))
            continue

        session.add(Course(**data.model_dump()))
        created += 1

    await session.commit()
    logger.info(f"CSV import into department {department_id}: {created} created, {len(errors)} rejected")
    return CourseCsvImportResult(created=created, errors=errors)


# ------------------------------------------------------------
# LIST
# ------------------------------------------------------------
async def list_courses(session: AsyncSession, department_id: int) -> list[CourseRead]:
    """Courses offered by or taken by the department."""
    result = await session.execute(
        select(Course)
        .where(or_(Course.for_dept == department_id, Course.department_id == department_id))
        .options(selectinload(Course.teacher))
        .order_by(Course.code)
    )
    return [to_course_read(c) for c in result.scalars().all()]


async def list_courses_for(session: AsyncSession, department_id: int | None = None) -> list[Course]:
    query = select(Course).order_by(Course.name)
    if department_id is not None:
        query = query.where(Course.for_dept == department_id)
    result = await session.execute(query)
    return result.scalars().all()


# ------------------------------------------------------------
# DELETE / ARCHIVE
# ------------------------------------------------------------
async def _detach_courses(session: AsyncSession, course_ids) -> None:
    await session.execute(delete(RoutineEntry).where(RoutineEntry.course_id.in_(course_ids)))
    await session.execute(delete(SemesterCourseTeacher).where(SemesterCourseTeacher.course_id.in_(course_ids)))
    await session.execute(delete(SemesterCourse).where(SemesterCourse.course_id.in_(course_ids)))


async def delete_course(session: AsyncSession, course_id: int) -> None:
    course = await get_course(session, course_id)
    await _detach_courses(session, [course_id])
    await session.delete(course)
    await session.commit()
    logger.info(f"Deleted course {course.code} (id={course_id})")


async def delete_all_courses(session: AsyncSession, department_id: int) -> int:
    course_ids = list(
        (await session.execute(select(Course.id).where(Course.department_id == department_id))).scalars().all()
    )
    if course_ids:
        await _detach_courses(session, course_ids)
        await session.execute(delete(Course).where(Course.id.in_(course_ids)))
    await session.commit()
    logger.warning(f"Deleted {len(course_ids)} courses of department {department_id}")
    return len(course_ids)


async def set_archived(session: AsyncSession, course_id: int, archived: bool) -> Course:
    course = await get_course(session, course_id)
    course.is_archived = archived
    session.add(course)
    await session.commit()
    await session.refresh(course)
    return course


# ------------------------------------------------------------
# DEFAULT TEACHER
# ------------------------------------------------------------
async def assign_teacher(session: AsyncSession, course_id: int, teacher_id: int) -> CourseRead:
    course = await get_course(session, course_id)

    teacher = await session.get(User, teacher_id)
    if not teacher or teacher.role != UserRole.teacher:
        raise ValueError("Teacher not found or not in your department.")

    course.teacher_id = teacher_id
    session.add(course)
    await session.commit()
    await session.refresh(course)
    logger.info(f"Teacher {teacher_id} is now the default teacher of course {course.code}")
    return CourseRead.model_validate(course).model_copy(update={"teacher_name": teacher.name})


# ------------------------------------------------------------
# PER-USER COURSE LISTS
# ------------------------------------------------------------
async def courses_of_semester(session: AsyncSession, semester_id: int) -> list[CourseRead]:
    if not await session.get(Semester, semester_id):
        raise LookupError("Semester not found.")

    result = await session.execute(
        select(Course)
        .join(SemesterCourse, SemesterCourse.course_id == Course.id)
        .where(SemesterCourse.semester_id == semester_id)
        .options(selectinload(Course.teacher))
        .order_by(Course.name)
    )
    return [to_course_read(c) for c in result.scalars().all()]


async def courses_of_teacher(session: AsyncSession, teacher_id: int) -> list[CourseRead]:
    """Courses the teacher teaches by default plus those assigned for a semester."""
    teacher = await session.get(User, teacher_id)
    if not teacher:
        raise LookupError("Teacher not found")

    assigned = select(SemesterCourseTeacher.course_id).where(SemesterCourseTeacher.teacher_id == teacher_id)
    result = await session.execute(
        select(Course)
        .where(or_(Course.teacher_id == teacher_id, Course.id.in_(assigned)))
        .options(selectinload(Course.teacher))
        .order_by(Course.name)
    )
    return [to_course_read(c) for c in result.scalars().all()]


async def courses_of_student(session: AsyncSession, student_id: int) -> list[CourseRead]:
    student = await session.get(User, student_id)
    if not student or not student.session or not student.department_id:
        raise LookupError("Student, session, or department not found")

    semester = (await session.execute(
        select(Semester)
        .where(Semester.department_id == student.department_id, Semester.session == student.session)
        .order_by(Semester.id)
    )).scalars().first()
    if not semester:
        raise LookupError("Semester not found for this session and department")

    return await courses_of_semester(session, semester.id)
