from sqlmodel import SQLModel, Field
from sqlalchemy import Column, DateTime, String, Text, UniqueConstraint
from sqlalchemy import Enum as SAEnum
from datetime import datetime, timezone
from typing import ClassVar, Optional
import uuid

from app.models.enums import DeletionPolicy, DepartmentStatus


class Department(SQLModel, table=True):
    __tablename__ = "departments"
    __table_args__ = (
        UniqueConstraint("college_id", "code", name="uq_departments_college_code"),
    )

    deletion_policy: ClassVar[DeletionPolicy] = DeletionPolicy.SOFT

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    # Tenant
    college_id: uuid.UUID = Field(index=True, nullable=False)

    name: str = Field(
        sa_column=Column(String(128), nullable=False)
    )

    # Human readable key used by bulk uploads, e.g. "ANAT"
    code: str = Field(
        sa_column=Column(String(32), nullable=False)
    )

    description: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True)
    )

    status: DepartmentStatus = Field(
        default=DepartmentStatus.ACTIVE,
        sa_column=Column(SAEnum(DepartmentStatus, name="department_status"), nullable=False)
    )

    # Weak reference: lookup only, no FK so a deleted faculty can leave it dangling
    hod_faculty_id: Optional[uuid.UUID] = Field(default=None, nullable=True)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
