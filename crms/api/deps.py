# crms/api/deps.py

from typing import AsyncGenerator, Optional

import jwt
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from crms.core.config import settings
from crms.core.exceptions import ConflictError
from crms.core.security import decode_token
from crms.core.database import get_session
from crms.services.auth_service import get_user_by_id, normalize_role
from crms.models.user import User, UserRole


# ------------------------------------------------------------
# HTTP Bearer Authentication (the login cookie is accepted too)
# ------------------------------------------------------------
bearer_scheme = HTTPBearer(auto_error=False)


# ------------------------------------------------------------
# DB Session
# ------------------------------------------------------------
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    async for session in get_session():
        yield session


# ------------------------------------------------------------
# Get current logged-in user from JWT
# ------------------------------------------------------------
async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_db_session),
) -> User:

    token = credentials.credentials if credentials else request.cookies.get(settings.AUTH_COOKIE_NAME)
    if not token:
        raise HTTPException(401, "Not authenticated")

    try:
        payload = decode_token(token)
        user_id = payload.get("sub")

        if not user_id:
            raise HTTPException(401, "Invalid token payload")

        user_id = int(user_id)

    except (jwt.PyJWTError, ValueError):
        raise HTTPException(401, "Could not validate credentials")

    user = await get_user_by_id(session, user_id)

    if not user:
        raise HTTPException(401, "User not found")

    return user


# ------------------------------------------------------------
# Role-based access control (case-insensitive, enum-safe)
# ------------------------------------------------------------
def role_required(*allowed_roles: UserRole):
    """
    Enforces that the current user has one of the allowed roles.
    No role bypasses the list.
    """
    normalized_allowed = set(normalize_role(r) for r in allowed_roles)

    async def checker(current_user: User = Depends(get_current_user)):
        if normalize_role(current_user.role) not in normalized_allowed:
            raise HTTPException(
                status_code=403,
                detail=f"Access denied for role '{normalize_role(current_user.role)}'"
            )
        return current_user

    return checker


# ------------------------------------------------------------
# Service exceptions -> HTTP
# ------------------------------------------------------------
SERVICE_ERRORS = (ValueError, LookupError, PermissionError)


def to_http(exc: Exception) -> HTTPException:
    if isinstance(exc, ConflictError):
        return HTTPException(409, detail=str(exc))
    if isinstance(exc, LookupError):
        return HTTPException(404, detail=str(exc))
    if isinstance(exc, PermissionError):
        return HTTPException(403, detail=str(exc))
    return HTTPException(400, detail=str(exc))


# ------------------------------------------------------------
# Exposed dependencies for routers
# ------------------------------------------------------------
require_super_admin = role_required(UserRole.super_admin)
require_department_admin = role_required(UserRole.department_admin)
require_teacher = role_required(UserRole.teacher)
require_student = role_required(UserRole.student)

require_admins = role_required(UserRole.department_admin, UserRole.super_admin)
require_staff = role_required(UserRole.super_admin, UserRole.department_admin, UserRole.teacher)
require_dept_staff = role_required(UserRole.department_admin, UserRole.teacher)
