# app/models/faculty_assignment.py

from sqlmodel import SQLModel, Field, Column
from sqlalchemy import DateTime, JSON, UniqueConstraint
from sqlalchemy import Enum as SAEnum
from datetime import datetime, timezone
from typing import ClassVar, List
import uuid

from app.models.enums import AssignmentStatus, DeletionPolicy


class FacultyAssignment(SQLModel, table=True):
    """
    One faculty in one department with one permission set.
    This row, not the faculty, is the unit of capability grant.
    """
    __tablename__ = "faculty_assignments"
    __table_args__ = (
        UniqueConstraint("faculty_id", "department_id", name="uq_faculty_assignments_faculty_department"),
    )

    deletion_policy: ClassVar[DeletionPolicy] = DeletionPolicy.HARD

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    faculty_id: uuid.UUID = Field(foreign_key="faculty.id", index=True, nullable=False)
    department_id: uuid.UUID = Field(foreign_key="departments.id", index=True, nullable=False)
    permission_set_id: uuid.UUID = Field(foreign_key="permission_sets.id", index=True, nullable=False)

    status: AssignmentStatus = Field(
        default=AssignmentStatus.ACTIVE,
        sa_column=Column(SAEnum(AssignmentStatus, name="assignment_status"), nullable=False)
    )

    # Free-form tags, not validated against any course catalogue
    subjects: List[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False)
    )

    assigned_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
