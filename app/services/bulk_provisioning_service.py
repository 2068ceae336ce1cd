# app/services/bulk_provisioning_service.py

"""
Bulk faculty provisioning from a CSV upload.

Each data row moves through

    PARSE -> RESOLVE_REFS -> CREATE_IDENTITY -> CREATE_ASSIGNMENT -> EMAIL_DISPATCH -> DONE

or stops at FAILED. Rows are processed one after another and a failing row
never aborts the batch: its reason is collected into the result instead.
"""

import csv
import io
import time
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Union

from fastapi.concurrency import run_in_threadpool
from loguru import logger
from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from sqlmodel import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.constants import FACULTY_CSV_COLUMNS
from app.core.exceptions import GovernanceError, ValidationError
from app.models.department import Department
from app.models.enums import DepartmentStatus
from app.models.permission_set import PermissionSet
from app.schemas.auth import TenantContext
from app.schemas.faculty import BulkUploadError, BulkUploadResult
from app.services.audit_service import record_activity
from app.services.email_service import send_faculty_credentials_email
from app.services.faculty_service import create_faculty_user

_email_adapter = TypeAdapter(EmailStr)


class RowStage(str, Enum):
    PARSE = "PARSE"
    RESOLVE_REFS = "RESOLVE_REFS"
    CREATE_IDENTITY = "CREATE_IDENTITY"
    CREATE_ASSIGNMENT = "CREATE_ASSIGNMENT"
    EMAIL_DISPATCH = "EMAIL_DISPATCH"
    DONE = "DONE"
    FAILED = "FAILED"
    # Deadline passed before the row was picked up
    NOT_STARTED = "NOT_STARTED"


# ------------------------------------------------------------
# REFERENCE RESOLUTION
# ------------------------------------------------------------
@dataclass(frozen=True)
class Found:
    id: uuid.UUID
    label: str


@dataclass(frozen=True)
class NotFound:
    reason: str


Resolution = Union[Found, NotFound]


class ReferenceResolver:
    """
    Maps the human readable keys of a bulk row (department code, permission
    set name) to ids, case-insensitively, within one college.
    Built from a single snapshot of both catalogues taken before the batch.
    """

    def __init__(self, departments: List[Department], permission_sets: List[PermissionSet]):
        self._departments = {
            d.code.lower(): (d.id, d.name, d.status) for d in departments
        }
        self._permission_sets = {
            p.name_key: (p.id, p.name) for p in permission_sets
        }

    @classmethod
    async def load(cls, session: AsyncSession, college_id: uuid.UUID) -> "ReferenceResolver":
        departments = await session.execute(select(Department).where(Department.college_id == college_id))
        permission_sets = await session.execute(select(PermissionSet).where(PermissionSet.college_id == college_id))
        return cls(list(departments.scalars().all()), list(permission_sets.scalars().all()))

    def department(self, code: str) -> Resolution:
        entry = self._departments.get(code.strip().lower())
        if entry is None:
            return NotFound(f"Department with code '{code}' not found")
        department_id, name, status = entry
        if status != DepartmentStatus.ACTIVE:
            return NotFound(f"Department with code '{code}' is inactive")
        return Found(department_id, name)

    def permission_set(self, name: str) -> Resolution:
        entry = self._permission_sets.get(name.strip().lower())
        if entry is None:
            return NotFound(f"Permission set '{name}' not found")
        return Found(*entry)


# ------------------------------------------------------------
# PARSING
# ------------------------------------------------------------
@dataclass
class FacultyRow:
    row: int            # line number in the file, header is line 1
    full_name: str
    email: str
    department_code: str
    permission_set_name: str


def _normalize_header(name: Optional[str]) -> str:
    return (name or "").strip().lower().replace("_", "").replace(" ", "")


def parse_faculty_csv(content: str) -> List[FacultyRow]:
    """
    Reads `fullName,email,departmentCode,permissionSetName` rows.
    Header problems reject the whole file; row problems are left to the pipeline.
    """
    reader = csv.DictReader(io.StringIO(content.lstrip("\ufeff")))
    if not reader.fieldnames:
        raise ValidationError("CSV must have a header row and at least one data row")

    reader.fieldnames = [_normalize_header(h) for h in reader.fieldnames]
    for column in FACULTY_CSV_COLUMNS:
        if column not in reader.fieldnames:
            raise ValidationError(f"Missing required column: {column}")

    rows: List[FacultyRow] = []
    for record in reader:
        values = {k: (v or "").strip() for k, v in record.items() if k is not None and isinstance(v, str)}
        if not any(values.values()):
            continue
        rows.append(FacultyRow(
            row=reader.line_num,
            full_name=values.get("fullname", ""),
            email=values.get("email", ""),
            department_code=values.get("departmentcode", ""),
            permission_set_name=values.get("permissionsetname", ""),
        ))

    if not rows:
        raise ValidationError("CSV must have a header row and at least one data row")
    if len(rows) > settings.BULK_UPLOAD_MAX_ROWS:
        raise ValidationError(
            f"CSV has {len(rows)} data rows; the limit is {settings.BULK_UPLOAD_MAX_ROWS} per upload"
        )
    return rows


def validate_row(row: FacultyRow) -> Optional[str]:
    if not row.full_name or not row.email:
        return "Missing fullName or email"
    try:
        _email_adapter.validate_python(row.email)
    except PydanticValidationError:
        return "Invalid email format"
    if not row.department_code:
        return "Missing departmentCode"
    if not row.permission_set_name:
        return "Missing permissionSetName"
    return None


# ------------------------------------------------------------
# PIPELINE
# ------------------------------------------------------------
@dataclass
class RowOutcome:
    stage: RowStage
    error: Optional[str] = None
    failed_at: Optional[RowStage] = None
    email_sent: Optional[bool] = None

    @classmethod
    def failed(cls, at: RowStage, error: str) -> "RowOutcome":
        return cls(stage=RowStage.FAILED, error=error, failed_at=at)


async def _dispatch_credentials(row: FacultyRow, temp_password: str, department_name: str) -> bool:
    # Best effort: a delivery failure never undoes the created account
    try:
        return await run_in_threadpool(send_faculty_credentials_email, {
            "full_name": row.full_name,
            "email": row.email,
            "temp_password": temp_password,
            "department_name": department_name,
        })
    except Exception:
        logger.exception(f"Credential email to {row.email} failed")
        return False


async def provision_row(
    session: AsyncSession,
    college_id: uuid.UUID,
    row: FacultyRow,
    resolver: ReferenceResolver,
    actor: TenantContext | None = None,
) -> RowOutcome:
    problem = validate_row(row)
    if problem:
        return RowOutcome.failed(RowStage.PARSE, problem)

    department = resolver.department(row.department_code)
    if isinstance(department, NotFound):
        return RowOutcome.failed(RowStage.RESOLVE_REFS, department.reason)
    permission_set = resolver.permission_set(row.permission_set_name)
    if isinstance(permission_set, NotFound):
        return RowOutcome.failed(RowStage.RESOLVE_REFS, permission_set.reason)

    # Identity and assignment are written by one composite create
    try:
        _, temp_password = await create_faculty_user(
            session, college_id, row.email, row.full_name,
            department.id, permission_set.id, actor=actor,
        )
    except GovernanceError as e:
        return RowOutcome.failed(RowStage.CREATE_IDENTITY, e.message)
    except SQLAlchemyError:
        await session.rollback()
        logger.exception(f"Row {row.row}: database error while creating {row.email}")
        return RowOutcome.failed(RowStage.CREATE_ASSIGNMENT, "Database error while creating faculty")

    sent = await _dispatch_credentials(row, temp_password, department.label)
    return RowOutcome(stage=RowStage.DONE, email_sent=sent)


async def bulk_provision_faculty(
    session: AsyncSession,
    college_id: uuid.UUID,
    content: str,
    actor: TenantContext | None = None,
) -> BulkUploadResult:
    rows = parse_faculty_csv(content)
    resolver = await ReferenceResolver.load(session, college_id)
    result = BulkUploadResult()
    deadline = time.monotonic() + settings.BULK_UPLOAD_TIMEOUT_SECONDS

    for row in rows:
        if time.monotonic() > deadline:
            outcome = RowOutcome.failed(RowStage.NOT_STARTED, "Upload time limit reached before this row was processed")
        else:
            outcome = await provision_row(session, college_id, row, resolver, actor=actor)

        if outcome.stage == RowStage.DONE:
            result.success_count += 1
            if outcome.email_sent:
                result.emails_sent += 1
            else:
                result.emails_failed += 1
        else:
            result.failed_count += 1
            result.errors.append(BulkUploadError(row=row.row, email=row.email or "unknown", error=outcome.error))
            if outcome.failed_at == RowStage.NOT_STARTED:
                logger.warning(f"Bulk upload row {row.row} not started: {outcome.error}")
            else:
                logger.warning(f"Bulk upload row {row.row} failed at {outcome.failed_at.value}: {outcome.error}")

    record_activity(
        session, college_id, "FACULTY_BULK_UPLOAD", "faculty", "bulk-upload",
        description=f"Bulk faculty upload: {result.success_count} created, {result.failed_count} failed",
        details=result.model_dump(exclude={"errors"}),
        actor=actor,
    )
    await session.commit()

    logger.info(
        f"Bulk upload for college {college_id}: {result.success_count} ok, "
        f"{result.failed_count} failed, {result.emails_sent} emails sent"
    )
    return result
