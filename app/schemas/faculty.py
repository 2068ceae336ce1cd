# app/schemas/faculty.py
from pydantic import BaseModel, ConfigDict, EmailStr
from typing import List, Optional
from uuid import UUID
from datetime import datetime

from app.models.enums import FacultyRole, FacultyStatus
from app.schemas.department import IntegrityWarningRead


# ------------------------------------------------------------
# CREATE (identity + first assignment in one call)
# ------------------------------------------------------------
class FacultyCreate(BaseModel):
    email: EmailStr
    full_name: str
    department_id: UUID
    permission_set_id: UUID


# ------------------------------------------------------------
# READ
# ------------------------------------------------------------
class FacultyRead(BaseModel):
    id: UUID
    college_id: UUID
    email: EmailStr
    full_name: str
    role: FacultyRole
    status: FacultyStatus
    last_login_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class FacultyCreateResponse(BaseModel):
    faculty: FacultyRead
    # Shown once to the admin; the credential email carries the same value
    temp_password: str


class FacultyDeleteResponse(BaseModel):
    detail: str
    deleted: FacultyRead
    warnings: List[IntegrityWarningRead] = []


# ------------------------------------------------------------
# BULK UPLOAD
# ------------------------------------------------------------
class BulkUploadError(BaseModel):
    row: int
    email: str
    error: str


class BulkUploadResult(BaseModel):
    success_count: int = 0
    failed_count: int = 0
    errors: List[BulkUploadError] = []
    emails_sent: int = 0
    emails_failed: int = 0
