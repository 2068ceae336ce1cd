# app/services/faculty_assignment_service.py

from datetime import datetime, timezone
from typing import List, Optional
import uuid

from loguru import logger
from sqlmodel import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError

from app.core.exceptions import (
    ConflictError,
    NotFoundError,
    ReferentialIntegrityWarning,
    ValidationError,
)
from app.models.department import Department
from app.models.enums import AssignmentStatus, DepartmentStatus, FacultyStatus
from app.models.faculty import Faculty
from app.models.faculty_assignment import FacultyAssignment
from app.models.permission_set import CAPABILITY_FLAGS, PermissionSet
from app.schemas.auth import TenantContext
from app.schemas.permission_set import NO_ACCESS, Capabilities
from app.services.audit_service import record_activity
from app.services.department_service import get_department
from app.services.permission_set_service import get_permission_set


def clean_subjects(subjects: Optional[List[str]]) -> List[str]:
    return [s.strip() for s in (subjects or []) if s and s.strip()]


def require_active_department(department: Department) -> None:
    if department.status != DepartmentStatus.ACTIVE:
        raise ValidationError(f"Department {department.code} is inactive")


async def get_assignment_for_pair(
    session: AsyncSession, faculty_id: uuid.UUID, department_id: uuid.UUID
) -> FacultyAssignment | None:
    result = await session.execute(
        select(FacultyAssignment).where(
            (FacultyAssignment.faculty_id == faculty_id) &
            (FacultyAssignment.department_id == department_id)
        )
    )
    return result.scalars().first()


# ============================================================================
# CREATE
# ============================================================================
async def create_faculty_assignment(
    session: AsyncSession,
    college_id: uuid.UUID,
    faculty_id: uuid.UUID,
    department_id: uuid.UUID,
    permission_set_id: uuid.UUID,
    subjects: Optional[List[str]] = None,
    actor: TenantContext | None = None,
) -> FacultyAssignment:
    result = await session.execute(
        select(Faculty).where(
            (Faculty.id == faculty_id) &
            (Faculty.college_id == college_id) &
            (Faculty.status == FacultyStatus.ACTIVE)
        )
    )
    faculty = result.scalar_one_or_none()
    if not faculty:
        raise NotFoundError("Faculty user not found or not eligible")

    department = await get_department(session, college_id, department_id)
    require_active_department(department)
    permission_set = await get_permission_set(session, college_id, permission_set_id)

    if await get_assignment_for_pair(session, faculty.id, department.id):
        raise ConflictError("Faculty is already assigned to this department")

    assignment = FacultyAssignment(
        faculty_id=faculty.id,
        department_id=department.id,
        permission_set_id=permission_set.id,
        subjects=clean_subjects(subjects),
        status=AssignmentStatus.ACTIVE,
    )
    session.add(assignment)
    record_activity(
        session, college_id, "FACULTY_ASSIGNED_TO_DEPARTMENT", "faculty_assignment", assignment.id,
        description=(
            f"Faculty {faculty.full_name} assigned to department {department.name} "
            f"with permission set {permission_set.name}"
        ),
        details={
            "faculty_id": faculty.id,
            "department_id": department.id,
            "permission_set_id": permission_set.id,
        },
        actor=actor,
    )

    try:
        await session.commit()
        await session.refresh(assignment)
    except IntegrityError:
        await session.rollback()
        raise ConflictError("Faculty is already assigned to this department")

    logger.info(f"Faculty {faculty.email} assigned to {department.code} ({permission_set.name})")
    return assignment


# ============================================================================
# LIST
# ============================================================================
async def list_assignments_for_department(
    session: AsyncSession, college_id: uuid.UUID, department_id: uuid.UUID
) -> List[FacultyAssignment]:
    await get_department(session, college_id, department_id)
    result = await session.execute(
        select(FacultyAssignment)
        .where(FacultyAssignment.department_id == department_id)
        .order_by(FacultyAssignment.assigned_at.asc())
    )
    return list(result.scalars().all())


async def list_assignments_for_faculty(
    session: AsyncSession, college_id: uuid.UUID, faculty_id: uuid.UUID
) -> List[FacultyAssignment]:
    faculty = await session.get(Faculty, faculty_id)
    if not faculty or faculty.college_id != college_id:
        raise NotFoundError("Faculty not found")

    result = await session.execute(
        select(FacultyAssignment)
        .where(FacultyAssignment.faculty_id == faculty_id)
        .order_by(FacultyAssignment.assigned_at.asc())
    )
    return list(result.scalars().all())


# ============================================================================
# UPDATE (in-place permission swap)
# ============================================================================
async def update_faculty_assignment(
    session: AsyncSession,
    college_id: uuid.UUID,
    assignment_id: uuid.UUID,
    permission_set_id: uuid.UUID | None = None,
    subjects: Optional[List[str]] = None,
    status: AssignmentStatus | None = None,
    actor: TenantContext | None = None,
) -> FacultyAssignment:
    """
    Swaps the capability bundle, subjects or status of an existing assignment.
    The assignment id and its (faculty, department) pair never change.
    """
    result = await session.execute(
        select(FacultyAssignment)
        .join(Department, Department.id == FacultyAssignment.department_id)
        .where(
            (FacultyAssignment.id == assignment_id) &
            (Department.college_id == college_id)
        )
    )
    assignment = result.scalar_one_or_none()
    if not assignment:
        raise NotFoundError("Faculty assignment not found")

    changes = {}
    if permission_set_id is not None:
        permission_set = await get_permission_set(session, college_id, permission_set_id)
        changes["previous_permission_set_id"] = assignment.permission_set_id
        changes["permission_set_id"] = permission_set.id
        assignment.permission_set_id = permission_set.id

    if subjects is not None:
        assignment.subjects = clean_subjects(subjects)
        changes["subjects"] = assignment.subjects

    if status is not None:
        assignment.status = status
        changes["status"] = status.value

    assignment.updated_at = datetime.now(timezone.utc)
    record_activity(
        session, college_id, "FACULTY_PERMISSIONS_CHANGED", "faculty_assignment", assignment.id,
        description="Faculty assignment updated",
        details=changes,
        actor=actor,
    )

    await session.commit()
    await session.refresh(assignment)
    return assignment


# ============================================================================
# REMOVE (scoped to one department)
# ============================================================================
async def remove_faculty_assignment(
    session: AsyncSession,
    college_id: uuid.UUID,
    faculty_id: uuid.UUID,
    department_id: uuid.UUID,
    actor: TenantContext | None = None,
) -> List[ReferentialIntegrityWarning]:
    department = await get_department(session, college_id, department_id)

    result = await session.execute(
        select(FacultyAssignment).where(
            (FacultyAssignment.faculty_id == faculty_id) &
            (FacultyAssignment.department_id == department.id)
        )
    )
    assignments = list(result.scalars().all())
    if not assignments:
        raise NotFoundError("Faculty assignment not found")

    for assignment in assignments:
        await session.delete(assignment)

    warnings: List[ReferentialIntegrityWarning] = []
    if department.hod_faculty_id == faculty_id:
        warnings.append(ReferentialIntegrityWarning(
            f"Faculty {faculty_id} remains HOD of {department.code} without an assignment there",
            "department",
            department.id,
        ))

    record_activity(
        session, college_id, "FACULTY_REMOVED_FROM_DEPARTMENT", "faculty_assignment",
        assignments[0].id,
        description=f"Faculty {faculty_id} removed from department {department.name}",
        details={"faculty_id": faculty_id, "department_id": department.id, "removed": len(assignments)},
        actor=actor,
    )
    await session.commit()

    for warning in warnings:
        logger.warning(warning.message)

    return warnings


# ============================================================================
# CAPABILITY RESOLUTION
# ============================================================================
async def effective_capabilities(
    session: AsyncSession, faculty_id: uuid.UUID, department_id: uuid.UUID
) -> Capabilities:
    """
    Capabilities of `faculty_id` inside `department_id`: the flags of the
    permission set on their ACTIVE assignment there, otherwise NO_ACCESS.
    Assignments in other departments are never consulted.
    """
    result = await session.execute(
        select(PermissionSet)
        .join(FacultyAssignment, FacultyAssignment.permission_set_id == PermissionSet.id)
        .where(
            (FacultyAssignment.faculty_id == faculty_id) &
            (FacultyAssignment.department_id == department_id) &
            (FacultyAssignment.status == AssignmentStatus.ACTIVE)
        )
    )
    permission_set = result.scalars().first()
    if permission_set is None:
        return NO_ACCESS
    return Capabilities.from_permission_set(permission_set)


async def has_capability(
    session: AsyncSession, faculty_id: uuid.UUID, department_id: uuid.UUID, capability: str
) -> bool:
    if capability not in CAPABILITY_FLAGS:
        raise ValidationError(f"Unknown capability '{capability}'")
    capabilities = await effective_capabilities(session, faculty_id, department_id)
    return getattr(capabilities, capability)
