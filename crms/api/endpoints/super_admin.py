# crms/api/endpoints/super_admin.py

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from crms.api.deps import SERVICE_ERRORS, get_db_session, require_super_admin, to_http
from crms.models.user import User
from crms.schemas.department import DepartmentCreate, DepartmentRead
from crms.schemas.resource import LabCreate, LabRead, RoomCreate, RoomRead
from crms.schemas.user import UserRead
from crms.services import department_service, resource_service
from crms.services.audit_service import log_activity
from crms.services.auth_service import delete_user_by_id, list_users_with_department

router = APIRouter(prefix="/api/dashboard/super-admin", tags=["Super Admin"])


# -------------------------------------------------------------------
# DEPARTMENTS
# -------------------------------------------------------------------
@router.post("/department", response_model=DepartmentRead, status_code=status.HTTP_201_CREATED)
async def create_department(
    payload: DepartmentCreate,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_super_admin),
):
    try:
        department = await department_service.create_department(session, payload.name, payload.acronym)
    except SERVICE_ERRORS as e:
        raise to_http(e)

    result = DepartmentRead.model_validate(department)
    await log_activity(session, "DEPARTMENT_CREATED", current_user, details={"department_id": result.id, "name": result.name})
    return result


@router.delete("/department/{department_id}")
async def delete_department(
    department_id: int,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_super_admin),
):
    try:
        department = await department_service.delete_department(session, department_id)
    except SERVICE_ERRORS as e:
        raise to_http(e)

    await log_activity(session, "DEPARTMENT_DELETED", current_user, details={"department_id": department_id, "name": department.name})
    return {"message": "Department and related data deleted successfully."}


# -------------------------------------------------------------------
# ROOMS / LABS
# -------------------------------------------------------------------
@router.post("/room", response_model=RoomRead, status_code=status.HTTP_201_CREATED)
async def create_room(
    payload: RoomCreate,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_super_admin),
):
    try:
        return await resource_service.create_room(session, payload)
    except SERVICE_ERRORS as e:
        raise to_http(e)


@router.post("/lab", response_model=LabRead, status_code=status.HTTP_201_CREATED)
async def create_lab(
    payload: LabCreate,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_super_admin),
):
    try:
        return await resource_service.create_lab(session, payload)
    except SERVICE_ERRORS as e:
        raise to_http(e)


# -------------------------------------------------------------------
# USERS
# -------------------------------------------------------------------
@router.get("/users", response_model=List[UserRead])
async def all_users(
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_super_admin),
):
    return await list_users_with_department(session)


@router.delete("/user/{user_id}")
async def delete_user(
    user_id: int,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_super_admin),
):
    try:
        user = await delete_user_by_id(session, user_id)
    except SERVICE_ERRORS as e:
        raise to_http(e)

    await log_activity(session, "USER_DELETED", current_user, details={"user_id": user_id, "email": user.email})
    return {"message": "User deleted successfully."}
