#app/models/audit.py

from sqlmodel import SQLModel, Field
from sqlalchemy import Column, DateTime, JSON
from typing import Optional, Dict, Any
from uuid import UUID, uuid4
from datetime import datetime, timezone

class AuditLog(SQLModel, table=True):
    __tablename__ = "audit_logs"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    college_id: UUID = Field(index=True)
    actor_id: Optional[UUID] = None
    actor_role: Optional[str] = None

    # e.g. DEPARTMENT_CREATED, HOD_ASSIGNED, FACULTY_BULK_UPLOAD
    action: str = Field(index=True)
    entity_type: str
    entity_id: Optional[str] = None
    description: Optional[str] = None

    # Request payload / before-after snapshot
    details: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))

    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True)
    )
