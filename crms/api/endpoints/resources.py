# crms/api/endpoints/resources.py

from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from crms.api.deps import SERVICE_ERRORS, get_db_session, require_admins, require_staff, to_http
from crms.models.user import User
from crms.schemas.resource import CapacityUpdate, LabRead, RoomRead, StatusUpdate
from crms.schemas.user import UserBrief
from crms.services import resource_service
from crms.services.auth_service import list_teachers

router = APIRouter(prefix="/api", tags=["Rooms & Labs"])


# -------------------------------------------------------------------
# ROOMS
# -------------------------------------------------------------------
@router.post("/room/{room_id}/status", response_model=RoomRead)
async def room_status(
    room_id: int,
    payload: StatusUpdate,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_staff),
):
    try:
        return await resource_service.set_room_status(session, room_id, payload.status)
    except SERVICE_ERRORS as e:
        raise to_http(e)


@router.post("/room/{room_id}/capacity", response_model=RoomRead)
async def room_capacity(
    room_id: int,
    payload: CapacityUpdate,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_staff),
):
    try:
        return await resource_service.set_room_capacity(session, room_id, payload.capacity)
    except SERVICE_ERRORS as e:
        raise to_http(e)


# -------------------------------------------------------------------
# LABS
# -------------------------------------------------------------------
@router.post("/lab/{lab_id}/status", response_model=LabRead)
async def lab_status(
    lab_id: int,
    payload: StatusUpdate,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_staff),
):
    try:
        return await resource_service.set_lab_status(session, lab_id, payload.status)
    except SERVICE_ERRORS as e:
        raise to_http(e)


@router.post("/lab/{lab_id}/capacity", response_model=LabRead)
async def lab_capacity(
    lab_id: int,
    payload: CapacityUpdate,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_staff),
):
    try:
        return await resource_service.set_lab_capacity(session, lab_id, payload.capacity)
    except SERVICE_ERRORS as e:
        raise to_http(e)


# -------------------------------------------------------------------
# DEPARTMENT ADMIN LISTINGS
# -------------------------------------------------------------------
@router.get("/dashboard/department-admin/rooms", response_model=List[RoomRead])
async def department_rooms(
    department_id: int = Query(..., alias="departmentId"),
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_admins),
):
    return await resource_service.list_rooms(session, department_id)


@router.get("/dashboard/department-admin/teachers", response_model=List[UserBrief])
async def department_teachers(
    department_id: int = Query(..., alias="departmentId"),
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_admins),
):
    return await list_teachers(session, department_id)
