# crms/api/endpoints/access.py

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from crms.api.deps import SERVICE_ERRORS, get_current_user, get_db_session, to_http
from crms.core.constants import ACCESS_MANAGE_ACCESS, GRANTABLE_ACCESSES
from crms.core.rbac import AllowAccess
from crms.models.user import User, UserRole
from crms.schemas.access import AccessList, AccessUpdate
from crms.schemas.user import UserRead
from crms.services.access_service import grant_access, remove_access
from crms.services.audit_service import log_activity

router = APIRouter(prefix="/api", tags=["Access"])

manage_access = AllowAccess(
    ACCESS_MANAGE_ACCESS, UserRole.super_admin, UserRole.department_admin, UserRole.teacher
)


@router.get("/accesses", response_model=AccessList)
async def list_accesses(_: User = Depends(get_current_user)):
    return AccessList(accesses=GRANTABLE_ACCESSES)


@router.post("/grant-access", response_model=UserRead)
async def grant(
    payload: AccessUpdate,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(manage_access),
):
    try:
        user = await grant_access(session, payload.user_id, payload.as_list())
    except SERVICE_ERRORS as e:
        raise to_http(e)

    result = UserRead.model_validate(user)
    await log_activity(session, "ACCESS_GRANTED", current_user, details={"user_id": user.id, "accesses": user.accesses})
    return result


@router.post("/remove-access", response_model=UserRead)
async def remove(
    payload: AccessUpdate,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(manage_access),
):
    try:
        user = await remove_access(session, payload.user_id, payload.as_list())
    except SERVICE_ERRORS as e:
        raise to_http(e)

    result = UserRead.model_validate(user)
    await log_activity(session, "ACCESS_REMOVED", current_user, details={"user_id": user.id, "removed": payload.as_list()})
    return result
