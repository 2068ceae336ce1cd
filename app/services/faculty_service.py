# app/services/faculty_service.py

from typing import List
import uuid

from loguru import logger
from sqlmodel import select
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError

from app.core.exceptions import (
    ConflictError,
    NotFoundError,
    ReferentialIntegrityWarning,
    ValidationError,
)
from app.core.security import issue_temporary_credentials
from app.models.department import Department
from app.models.enums import AssignmentStatus, FacultyRole, FacultyStatus
from app.models.faculty import Faculty
from app.models.faculty_assignment import FacultyAssignment
from app.schemas.auth import TenantContext
from app.schemas.faculty import FacultyRead
from app.services.audit_service import record_activity
from app.services.department_service import get_department
from app.services.faculty_assignment_service import require_active_department
from app.services.permission_set_service import get_permission_set


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


# ------------------------------------------------------------
# LOOKUPS
# ------------------------------------------------------------
async def get_faculty_by_email(session: AsyncSession, email: str) -> Faculty | None:
    result = await session.execute(select(Faculty).where(Faculty.email == normalize_email(email)))
    return result.scalar_one_or_none()


async def get_faculty(session: AsyncSession, college_id: uuid.UUID, faculty_id: uuid.UUID) -> Faculty:
    result = await session.execute(
        select(Faculty).where((Faculty.id == faculty_id) & (Faculty.college_id == college_id))
    )
    faculty = result.scalar_one_or_none()
    if not faculty:
        raise NotFoundError("Faculty user not found in your college")
    return faculty


async def list_faculty(session: AsyncSession, college_id: uuid.UUID) -> List[Faculty]:
    result = await session.execute(
        select(Faculty).where(Faculty.college_id == college_id).order_by(Faculty.full_name.asc())
    )
    return list(result.scalars().all())


# ------------------------------------------------------------
# CREATE FACULTY + FIRST ASSIGNMENT (one transaction)
# ------------------------------------------------------------
async def create_faculty_user(
    session: AsyncSession,
    college_id: uuid.UUID,
    email: str,
    full_name: str,
    department_id: uuid.UUID,
    permission_set_id: uuid.UUID,
    actor: TenantContext | None = None,
) -> tuple[Faculty, str]:
    """
    Creates the faculty identity and its first ACTIVE assignment.

    Both rows are committed together; if either insert fails neither exists.
    Returns the faculty and the plain temporary password, which is not
    stored anywhere and must be delivered by the caller.
    """
    email = normalize_email(email)
    full_name = (full_name or "").strip()

    if not full_name:
        raise ValidationError("Full name is required")
    if not email:
        raise ValidationError("Email is required")

    if await get_faculty_by_email(session, email):
        raise ConflictError("Email already in use")

    department = await get_department(session, college_id, department_id)
    require_active_department(department)
    permission_set = await get_permission_set(session, college_id, permission_set_id)

    temp_password, password_hash = issue_temporary_credentials()

    faculty = Faculty(
        college_id=college_id,
        email=email,
        full_name=full_name,
        password_hash=password_hash,
        role=FacultyRole.FACULTY,
        status=FacultyStatus.ACTIVE,
    )
    assignment = FacultyAssignment(
        faculty_id=faculty.id,
        department_id=department.id,
        permission_set_id=permission_set.id,
        subjects=[],
        status=AssignmentStatus.ACTIVE,
    )
    session.add(faculty)
    session.add(assignment)
    record_activity(
        session, college_id, "FACULTY_CREATED", "faculty", faculty.id,
        description=f"Faculty {full_name} created in department {department.name}",
        details={
            "email": email,
            "department_id": department.id,
            "permission_set_id": permission_set.id,
        },
        actor=actor,
    )

    try:
        await session.commit()
        await session.refresh(faculty)
    except IntegrityError:
        await session.rollback()
        raise ConflictError("Email already in use")

    logger.info(f"Faculty {email} created in {department.code} with '{permission_set.name}'")
    return faculty, temp_password


# ------------------------------------------------------------
# DELETE FACULTY (permanent, cascades assignments)
# ------------------------------------------------------------
async def delete_faculty_user(
    session: AsyncSession,
    college_id: uuid.UUID,
    faculty_id: uuid.UUID,
    actor: TenantContext | None = None,
) -> tuple[FacultyRead, List[ReferentialIntegrityWarning]]:
    """
    Irreversible. Removes every assignment of the faculty and the identity itself.
    HOD references to the faculty are left in place and reported as warnings.
    """
    faculty = await get_faculty(session, college_id, faculty_id)
    snapshot = FacultyRead.model_validate(faculty)

    result = await session.execute(
        select(Department).where(Department.hod_faculty_id == faculty.id)
    )
    warnings = [
        ReferentialIntegrityWarning(
            f"Department {department.code} still names deleted faculty {faculty.id} as HOD",
            "department",
            department.id,
        )
        for department in result.scalars().all()
    ]

    removed = await session.execute(
        delete(FacultyAssignment).where(FacultyAssignment.faculty_id == faculty.id)
    )
    await session.delete(faculty)

    record_activity(
        session, college_id, "FACULTY_DELETED", "faculty", snapshot.id,
        description=f"Faculty {snapshot.full_name} deleted",
        details={"email": snapshot.email, "assignments_removed": removed.rowcount},
        actor=actor,
    )
    await session.commit()

    logger.info(f"Faculty {snapshot.email} deleted with {removed.rowcount} assignment(s)")
    for warning in warnings:
        logger.warning(warning.message)

    return snapshot, warnings
