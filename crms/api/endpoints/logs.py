# crms/api/endpoints/logs.py

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from crms.api.deps import get_db_session, require_super_admin
from crms.models.user import User
from crms.schemas.audit import AuditLogRead
from crms.services.audit_service import list_logs

router = APIRouter(prefix="/api/admin", tags=["Audit & Logs"])


# -------------------------------------------------------------------
# ROUTINE AND ADMINISTRATION AUDIT TRAIL
# -------------------------------------------------------------------
@router.get("/audit-logs", response_model=List[AuditLogRead])
async def get_audit_logs(
    action: Optional[str] = Query(None),
    actor_role: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_super_admin),
):
    """Newest first."""
    return await list_logs(session, action=action, actor_role=actor_role, limit=limit)
