from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from uuid import UUID
from datetime import datetime

from app.models.enums import AssignmentStatus
from app.schemas.department import DepartmentRead, IntegrityWarningRead
from app.schemas.permission_set import Capabilities


class AssignmentCreate(BaseModel):
    faculty_id: UUID
    department_id: UUID
    permission_set_id: UUID
    subjects: List[str] = []


class AssignmentUpdate(BaseModel):
    permission_set_id: Optional[UUID] = None
    subjects: Optional[List[str]] = None
    status: Optional[AssignmentStatus] = None


class AssignmentRead(BaseModel):
    id: UUID
    faculty_id: UUID
    department_id: UUID
    permission_set_id: UUID
    status: AssignmentStatus
    subjects: List[str] = []
    assigned_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CapabilitiesRead(BaseModel):
    faculty_id: UUID
    department_id: UUID
    has_access: bool
    capabilities: Capabilities


class AssignmentRemoveResponse(BaseModel):
    detail: str
    warnings: List[IntegrityWarningRead] = []


# Department headed by the caller, with everyone assigned to it
class HeadedDepartmentRead(BaseModel):
    department: DepartmentRead
    assignments: List[AssignmentRead] = []
