# crms/services/department_service.py

from loguru import logger
from sqlmodel import select
from sqlalchemy import delete, or_, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError

from crms.core.constants import DEFAULT_SEMESTERS
from crms.core.exceptions import ConflictError
from crms.models.academic import Course, Semester, SemesterCourse, SemesterCourseTeacher
from crms.models.department import Department
from crms.models.resource import Lab, Room
from crms.models.routine import RoutineEntry
from crms.models.user import User


async def list_departments(session: AsyncSession) -> list[Department]:
    result = await session.execute(select(Department).order_by(Department.name))
    return result.scalars().all()


async def get_department(session: AsyncSession, department_id: int) -> Department:
    department = await session.get(Department, department_id)
    if not department:
        raise LookupError("Department not found.")
    return department


async def create_department(session: AsyncSession, name: str, acronym: str | None = None) -> Department:
    """Creates the department together with its eight semesters."""
    name = (name or "").strip()
    if not name:
        raise ValueError("Department name is required.")

    dup = await session.execute(select(Department).where(Department.name == name))
    if dup.scalar_one_or_none():
        raise ConflictError("Department already exists.")

    department = Department(name=name, acronym=acronym.strip() if acronym else None)
    session.add(department)

    try:
        await session.flush()
        for semester_name, shortname in DEFAULT_SEMESTERS:
            session.add(Semester(name=semester_name, shortname=shortname, department_id=department.id))
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise ConflictError("Department name or acronym already in use.")

    await session.refresh(department)
    logger.info(f"Created department {department.name} (id={department.id}) with {len(DEFAULT_SEMESTERS)} semesters")
    return department


async def delete_department(session: AsyncSession, department_id: int) -> Department:
    """
    Removes the department and everything referencing it, children first:
    routine entries, semester links and assignments, semesters, courses,
    rooms, labs, users.
    """
    department = await get_department(session, department_id)

    semester_ids = select(Semester.id).where(Semester.department_id == department_id)
    course_ids = select(Course.id).where(
        or_(Course.department_id == department_id, Course.for_dept == department_id)
    )

    await session.execute(delete(RoutineEntry).where(
        or_(RoutineEntry.department_id == department_id, RoutineEntry.semester_id.in_(semester_ids))
    ))
    await session.execute(delete(RoutineEntry).where(RoutineEntry.course_id.in_(course_ids)))
    await session.execute(delete(SemesterCourseTeacher).where(
        or_(SemesterCourseTeacher.semester_id.in_(semester_ids), SemesterCourseTeacher.course_id.in_(course_ids))
    ))
    await session.execute(delete(SemesterCourse).where(
        or_(SemesterCourse.semester_id.in_(semester_ids), SemesterCourse.course_id.in_(course_ids))
    ))
    await session.execute(delete(Semester).where(Semester.department_id == department_id))
    await session.execute(delete(Course).where(
        or_(Course.department_id == department_id, Course.for_dept == department_id)
    ))
    # other departments may have booked these rooms and labs
    room_ids = select(Room.id).where(Room.department_id == department_id)
    lab_ids = select(Lab.id).where(Lab.department_id == department_id)
    await session.execute(update(RoutineEntry).where(RoutineEntry.room_id.in_(room_ids)).values(room_id=None))
    await session.execute(update(RoutineEntry).where(RoutineEntry.lab_id.in_(lab_ids)).values(lab_id=None))
    await session.execute(delete(Room).where(Room.department_id == department_id))
    await session.execute(delete(Lab).where(Lab.department_id == department_id))

    # staff of this department may still be referenced by other departments
    user_ids = select(User.id).where(User.department_id == department_id)
    await session.execute(update(Course).where(Course.teacher_id.in_(user_ids)).values(teacher_id=None))
    await session.execute(update(RoutineEntry).where(RoutineEntry.teacher_id.in_(user_ids)).values(teacher_id=None))
    await session.execute(delete(SemesterCourseTeacher).where(SemesterCourseTeacher.teacher_id.in_(user_ids)))
    await session.execute(delete(User).where(User.department_id == department_id))

    await session.delete(department)
    await session.commit()

    logger.warning(f"Deleted department {department.name} (id={department_id}) and its data")
    return department
