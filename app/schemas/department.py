from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from uuid import UUID
from datetime import datetime

from app.models.enums import DepartmentStatus


# ---------------------------------------------------------
# CREATE / UPDATE
# ---------------------------------------------------------
class DepartmentCreate(BaseModel):
    name: str
    code: str
    description: Optional[str] = None


class DepartmentUpdate(BaseModel):
    name: Optional[str] = None
    # Accepted only when it matches the current code; codes are fixed after creation
    code: Optional[str] = None
    description: Optional[str] = None
    status: Optional[DepartmentStatus] = None


class AssignHodRequest(BaseModel):
    faculty_id: UUID


# ---------------------------------------------------------
# READ
# ---------------------------------------------------------
class DepartmentRead(BaseModel):
    id: UUID
    college_id: UUID
    name: str
    code: str
    description: Optional[str] = None
    status: DepartmentStatus
    hod_faculty_id: Optional[UUID] = None
    assignment_count: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class IntegrityWarningRead(BaseModel):
    message: str
    entity_type: str
    entity_id: str


class DepartmentDeactivateResponse(BaseModel):
    department: DepartmentRead
    warnings: List[IntegrityWarningRead] = []
