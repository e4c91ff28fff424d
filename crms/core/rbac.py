# crms/core/rbac.py

from fastapi import Depends, HTTPException, status

from crms.api.deps import get_current_user
from crms.models.user import User, UserRole
from crms.services.access_service import has_access
from crms.services.auth_service import normalize_role


def AllowAccess(access: str, *allowed_roles):
    """
    Role list plus a named access:
    - role must be in allowed_roles (case-insensitive)
    - super admin bypasses the access check
    - everyone else must hold `access`
    """
    normalized_allowed = {normalize_role(r) for r in allowed_roles}

    async def access_checker(current_user: User = Depends(get_current_user)):
        user_role = normalize_role(current_user.role)

        if normalized_allowed and user_role not in normalized_allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied for role '{user_role}'"
            )

        if user_role == UserRole.super_admin.value:
            return current_user

        if not has_access(current_user, access):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Missing access '{access}'"
            )

        return current_user

    return access_checker
