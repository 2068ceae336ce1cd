# app/models/faculty.py

from sqlmodel import SQLModel, Field, Column
from sqlalchemy import DateTime, String
from sqlalchemy import Enum as SAEnum
from datetime import datetime, timezone
from typing import ClassVar, Optional
import uuid

from app.models.enums import DeletionPolicy, FacultyRole, FacultyStatus


class Faculty(SQLModel, table=True):
    __tablename__ = "faculty"

    deletion_policy: ClassVar[DeletionPolicy] = DeletionPolicy.HARD

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    college_id: uuid.UUID = Field(index=True, nullable=False)

    email: str = Field(
        sa_column=Column(String(255), nullable=False, unique=True, index=True)
    )
    full_name: str = Field(
        sa_column=Column(String(255), nullable=False)
    )

    # bcrypt hash of the issued temporary password
    password_hash: str = Field(nullable=False)

    role: FacultyRole = Field(
        default=FacultyRole.FACULTY,
        sa_column=Column(SAEnum(FacultyRole, name="faculty_role"), nullable=False)
    )
    status: FacultyStatus = Field(
        default=FacultyStatus.ACTIVE,
        sa_column=Column(SAEnum(FacultyStatus, name="faculty_status"), nullable=False)
    )

    last_login_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True)
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
