from sqlmodel import SQLModel, Field
from sqlalchemy import Column, DateTime, String, Text, UniqueConstraint
from datetime import datetime, timezone
from typing import ClassVar, Optional
import uuid

from app.models.enums import DeletionPolicy


# Every boolean capability a permission set can grant. Order is the display order.
CAPABILITY_FLAGS = (
    "can_view_analytics",
    "can_create_course",
    "can_edit_course",
    "can_delete_course",
    "can_publish_course",
    "can_assign_students",
    "can_grade_students",
    "can_create_assessment",
    "can_edit_assessment",
    "can_delete_assessment",
)


class PermissionSet(SQLModel, table=True):
    __tablename__ = "permission_sets"
    __table_args__ = (
        UniqueConstraint("college_id", "name_key", name="uq_permission_sets_college_name_key"),
    )

    deletion_policy: ClassVar[DeletionPolicy] = DeletionPolicy.HARD

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    college_id: uuid.UUID = Field(index=True, nullable=False)

    name: str = Field(
        sa_column=Column(String(128), nullable=False)
    )
    # Lower-cased name; uniqueness is case-insensitive per college
    name_key: str = Field(
        sa_column=Column(String(128), nullable=False)
    )
    description: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True)
    )

    # Flat flags only: no inheritance between sets
    can_view_analytics: bool = Field(default=False, nullable=False)
    can_create_course: bool = Field(default=False, nullable=False)
    can_edit_course: bool = Field(default=False, nullable=False)
    can_delete_course: bool = Field(default=False, nullable=False)
    can_publish_course: bool = Field(default=False, nullable=False)
    can_assign_students: bool = Field(default=False, nullable=False)
    can_grade_students: bool = Field(default=False, nullable=False)
    can_create_assessment: bool = Field(default=False, nullable=False)
    can_edit_assessment: bool = Field(default=False, nullable=False)
    can_delete_assessment: bool = Field(default=False, nullable=False)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )

    def flags(self) -> dict[str, bool]:
        return {flag: bool(getattr(self, flag)) for flag in CAPABILITY_FLAGS}
