# app/api/endpoints/faculty_users.py

from typing import List
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, File, HTTPException, UploadFile, status
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db_session
from app.core.constants import GOVERNANCE_READERS, GOVERNANCE_WRITERS
from app.core.rbac import AllowRoles
from app.schemas.auth import TenantContext
from app.schemas.department import IntegrityWarningRead
from app.schemas.faculty import (
    BulkUploadResult,
    FacultyCreate,
    FacultyCreateResponse,
    FacultyDeleteResponse,
    FacultyRead,
)
from app.services.bulk_provisioning_service import bulk_provision_faculty
from app.services.department_service import get_department
from app.services.email_service import send_faculty_credentials_email
from app.services.faculty_service import create_faculty_user, delete_faculty_user, list_faculty

router = APIRouter(
    prefix="/api/governance/faculty-users",
    tags=["Faculty Users"]
)


# ----------------------------------------------------------------
# 1. LIST FACULTY
# ----------------------------------------------------------------
@router.get("", response_model=List[FacultyRead])
async def list_faculty_endpoint(
    actor: TenantContext = Depends(AllowRoles(*GOVERNANCE_READERS)),
    session: AsyncSession = Depends(get_db_session),
):
    return await list_faculty(session, actor.college_id)


# ----------------------------------------------------------------
# 2. CREATE FACULTY + FIRST ASSIGNMENT
# ----------------------------------------------------------------
@router.post("", response_model=FacultyCreateResponse, status_code=201)
async def create_faculty_endpoint(
    payload: FacultyCreate,
    background_tasks: BackgroundTasks,
    actor: TenantContext = Depends(AllowRoles(*GOVERNANCE_WRITERS)),
    session: AsyncSession = Depends(get_db_session),
):
    faculty, temp_password = await create_faculty_user(
        session,
        actor.college_id,
        payload.email,
        payload.full_name,
        payload.department_id,
        payload.permission_set_id,
        actor=actor,
    )
    department = await get_department(session, actor.college_id, payload.department_id)

    background_tasks.add_task(send_faculty_credentials_email, {
        "full_name": faculty.full_name,
        "email": faculty.email,
        "temp_password": temp_password,
        "department_name": department.name,
    })

    return FacultyCreateResponse(faculty=FacultyRead.model_validate(faculty), temp_password=temp_password)


# ----------------------------------------------------------------
# 3. BULK UPLOAD (CSV)
# ----------------------------------------------------------------
@router.post("/bulk-upload", response_model=BulkUploadResult)
async def bulk_upload_faculty(
    file: UploadFile = File(...),
    actor: TenantContext = Depends(AllowRoles(*GOVERNANCE_WRITERS)),
    session: AsyncSession = Depends(get_db_session),
):
    """
    Creates one faculty user (with its first assignment) per CSV row.
    Columns: fullName, email, departmentCode, permissionSetName.
    A bad row is reported in `errors` and never stops the rows after it.
    """
    if file.filename and not file.filename.lower().endswith(".csv"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only CSV files are allowed."
        )

    raw = await file.read()
    try:
        content = raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="CSV file must be UTF-8 encoded."
        )

    logger.info(f"Bulk faculty upload '{file.filename}' by {actor.actor_id}")
    return await bulk_provision_faculty(session, actor.college_id, content, actor=actor)


# ----------------------------------------------------------------
# 4. DELETE FACULTY (permanent)
# ----------------------------------------------------------------
@router.delete("/{faculty_id}", response_model=FacultyDeleteResponse)
async def delete_faculty_endpoint(
    faculty_id: UUID,
    actor: TenantContext = Depends(AllowRoles(*GOVERNANCE_WRITERS)),
    session: AsyncSession = Depends(get_db_session),
):
    deleted, warnings = await delete_faculty_user(session, actor.college_id, faculty_id, actor=actor)
    return FacultyDeleteResponse(
        detail="Faculty user deleted permanently",
        deleted=deleted,
        warnings=[IntegrityWarningRead(**w.as_dict()) for w in warnings],
    )
