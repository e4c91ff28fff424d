#crms/models/audit.py

from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON
from typing import Optional, Dict, Any
from uuid import UUID, uuid4
from datetime import datetime, timezone

class AuditLog(SQLModel, table=True):
    __tablename__ = "audit_logs"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    actor_id: Optional[int] = None
    actor_role: Optional[str] = None

    # Snapshot, survives deletion of the actor
    actor_name: Optional[str] = None

    action: str
    remarks: Optional[str] = None

    # e.g. {"department_id": 3, "semester_ids": [1, 2], "entries": 27}
    details: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))

    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
