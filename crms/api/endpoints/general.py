# crms/api/endpoints/general.py

"""
Read-only lookups used by every dashboard: departments, rooms, labs,
semesters, courses, teachers and user profiles.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from crms.api.deps import SERVICE_ERRORS, get_current_user, get_db_session, require_staff, to_http
from crms.models.user import User
from crms.schemas.academic import CourseRead, SemesterRead
from crms.schemas.department import DepartmentRead
from crms.schemas.resource import LabRead, RoomRead
from crms.schemas.user import UserBrief, UserProfile, UserRead
from crms.services import department_service, resource_service
from crms.services.auth_service import get_user_profile, list_teachers, list_users_with_department
from crms.services.course_service import list_courses_for
from crms.services.semester_service import list_semesters

router = APIRouter(prefix="/api", tags=["General"])


# -------------------------------------------------------------------
# USERS
# -------------------------------------------------------------------
@router.get("/users", response_model=List[UserRead])
async def users(
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_staff),
):
    return await list_users_with_department(session)


@router.get("/department/{department_id}/users", response_model=List[UserRead])
async def department_users(
    department_id: int,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_staff),
):
    return await list_users_with_department(session, department_id)


@router.get("/user/{email}", response_model=UserProfile)
async def user_profile(
    email: str,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(get_current_user),
):
    try:
        return await get_user_profile(session, email)
    except SERVICE_ERRORS as e:
        raise to_http(e)


# -------------------------------------------------------------------
# DEPARTMENTS
# -------------------------------------------------------------------
@router.get("/departments", response_model=List[DepartmentRead])
async def departments(session: AsyncSession = Depends(get_db_session)):
    return await department_service.list_departments(session)


@router.get("/department/{department_id}", response_model=DepartmentRead)
async def department(department_id: int, session: AsyncSession = Depends(get_db_session)):
    try:
        return await department_service.get_department(session, department_id)
    except SERVICE_ERRORS as e:
        raise to_http(e)


# -------------------------------------------------------------------
# ROOMS / LABS / SEMESTERS / COURSES / TEACHERS
# -------------------------------------------------------------------
@router.get("/rooms", response_model=List[RoomRead])
async def rooms(
    department_id: Optional[int] = Query(default=None, alias="departmentId"),
    session: AsyncSession = Depends(get_db_session),
):
    return await resource_service.list_rooms(session, department_id)


@router.get("/labs", response_model=List[LabRead])
async def labs(
    department_id: Optional[int] = Query(default=None, alias="departmentId"),
    session: AsyncSession = Depends(get_db_session),
):
    return await resource_service.list_labs(session, department_id)


@router.get("/semesters", response_model=List[SemesterRead])
async def semesters(
    department_id: Optional[int] = Query(default=None, alias="departmentId"),
    session: AsyncSession = Depends(get_db_session),
):
    return await list_semesters(session, department_id)


@router.get("/courses", response_model=List[CourseRead])
async def courses(
    department_id: Optional[int] = Query(default=None, alias="departmentId"),
    session: AsyncSession = Depends(get_db_session),
):
    """Courses taken by the department's students."""
    return await list_courses_for(session, department_id)


@router.get("/teachers", response_model=List[UserBrief])
async def teachers(
    department_id: Optional[int] = Query(default=None, alias="departmentId"),
    session: AsyncSession = Depends(get_db_session),
):
    return await list_teachers(session, department_id)
