from pydantic import BaseModel, ConfigDict
from typing import Optional
from uuid import UUID
from datetime import datetime

from app.models.permission_set import CAPABILITY_FLAGS, PermissionSet


# ---------------------------------------------------------
# FLAGS
# ---------------------------------------------------------
class PermissionFlags(BaseModel):
    can_view_analytics: bool = False
    can_create_course: bool = False
    can_edit_course: bool = False
    can_delete_course: bool = False
    can_publish_course: bool = False
    can_assign_students: bool = False
    can_grade_students: bool = False
    can_create_assessment: bool = False
    can_edit_assessment: bool = False
    can_delete_assessment: bool = False


class PermissionSetCreate(PermissionFlags):
    name: str
    description: Optional[str] = None


class PermissionSetUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None

    can_view_analytics: Optional[bool] = None
    can_create_course: Optional[bool] = None
    can_edit_course: Optional[bool] = None
    can_delete_course: Optional[bool] = None
    can_publish_course: Optional[bool] = None
    can_assign_students: Optional[bool] = None
    can_grade_students: Optional[bool] = None
    can_create_assessment: Optional[bool] = None
    can_edit_assessment: Optional[bool] = None
    can_delete_assessment: Optional[bool] = None

    def flag_changes(self) -> dict[str, bool]:
        provided = self.model_dump(exclude_unset=True)
        return {k: v for k, v in provided.items() if k in CAPABILITY_FLAGS and v is not None}


class PermissionSetRead(PermissionFlags):
    id: UUID
    college_id: UUID
    name: str
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------
# CAPABILITIES (value type)
# What one faculty may do inside one department. Never merged
# across departments.
# ---------------------------------------------------------
class Capabilities(PermissionFlags):
    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_permission_set(cls, permission_set: PermissionSet) -> "Capabilities":
        return cls(**permission_set.flags())

    @property
    def has_any(self) -> bool:
        return any(getattr(self, flag) for flag in CAPABILITY_FLAGS)


NO_ACCESS = Capabilities()
