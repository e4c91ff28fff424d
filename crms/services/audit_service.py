# crms/services/audit_service.py

from typing import Optional, Dict, Any

from loguru import logger
from sqlmodel import select
from sqlalchemy.ext.asyncio import AsyncSession

from crms.models.audit import AuditLog
from crms.models.user import User


async def log_activity(
    session: AsyncSession,
    action: str,
    actor: Optional[User] = None,
    remarks: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None
) -> None:
    """
    Writes an audit row on the request session, after the audited change
    has been committed. A failing audit write never fails the request.
    """
    try:
        log_entry = AuditLog(
            actor_id=actor.id if actor else None,
            actor_role=actor.role.value if actor else None,
            actor_name=actor.name if actor else None,
            action=action,
            remarks=remarks,
            details=details or {}
        )
        session.add(log_entry)
        await session.commit()

    except Exception:
        logger.exception(f"Audit log write failed for action {action}")
        await session.rollback()


async def list_logs(
    session: AsyncSession,
    action: Optional[str] = None,
    actor_role: Optional[str] = None,
    limit: int = 100,
) -> list[AuditLog]:
    query = select(AuditLog).order_by(AuditLog.timestamp.desc()).limit(limit)
    if action:
        query = query.where(AuditLog.action == action)
    if actor_role:
        query = query.where(AuditLog.actor_role == actor_role)
    result = await session.execute(query)
    return result.scalars().all()
