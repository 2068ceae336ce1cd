# app/services/department_service.py

from datetime import datetime, timezone
from typing import List, Optional
import uuid

from loguru import logger
from sqlmodel import select
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError

from app.core.exceptions import (
    ConflictError,
    NotFoundError,
    ReferentialIntegrityWarning,
    ValidationError,
)
from app.models.department import Department
from app.models.enums import AssignmentStatus, DepartmentStatus, FacultyRole, FacultyStatus
from app.models.faculty import Faculty
from app.models.faculty_assignment import FacultyAssignment
from app.schemas.auth import TenantContext
from app.services.audit_service import record_activity


def normalize_code(code: Optional[str]) -> str:
    return (code or "").strip().upper()


# ============================================================================
# LOOKUPS
# ============================================================================
async def get_department(session: AsyncSession, college_id: uuid.UUID, department_id: uuid.UUID) -> Department:
    result = await session.execute(
        select(Department).where(
            (Department.id == department_id) & (Department.college_id == college_id)
        )
    )
    department = result.scalar_one_or_none()
    if not department:
        raise NotFoundError("Department not found")
    return department


async def get_department_by_code(session: AsyncSession, college_id: uuid.UUID, code: str) -> Department | None:
    result = await session.execute(
        select(Department).where(
            (Department.college_id == college_id) & (Department.code == normalize_code(code))
        )
    )
    return result.scalar_one_or_none()


async def list_departments(session: AsyncSession, college_id: uuid.UUID) -> List[Department]:
    result = await session.execute(
        select(Department).where(Department.college_id == college_id).order_by(Department.name.asc())
    )
    return list(result.scalars().all())


async def list_departments_headed_by(
    session: AsyncSession, college_id: uuid.UUID, faculty_id: uuid.UUID
) -> List[tuple[Department, List[FacultyAssignment]]]:
    """Departments whose HOD is `faculty_id`, each with all of its assignments."""
    result = await session.execute(
        select(Department)
        .where((Department.college_id == college_id) & (Department.hod_faculty_id == faculty_id))
        .order_by(Department.name.asc())
    )
    departments = list(result.scalars().all())
    if not departments:
        return []

    result = await session.execute(
        select(FacultyAssignment)
        .where(FacultyAssignment.department_id.in_([d.id for d in departments]))
        .order_by(FacultyAssignment.assigned_at.asc())
    )
    by_department: dict[uuid.UUID, List[FacultyAssignment]] = {d.id: [] for d in departments}
    for assignment in result.scalars().all():
        by_department[assignment.department_id].append(assignment)

    return [(d, by_department[d.id]) for d in departments]


async def count_assignments_by_department(session: AsyncSession, college_id: uuid.UUID) -> dict[uuid.UUID, int]:
    result = await session.execute(
        select(FacultyAssignment.department_id, func.count(FacultyAssignment.id))
        .join(Department, Department.id == FacultyAssignment.department_id)
        .where(Department.college_id == college_id)
        .group_by(FacultyAssignment.department_id)
    )
    return {dept_id: count for dept_id, count in result.all()}


# ============================================================================
# CREATE
# ============================================================================
async def create_department(
    session: AsyncSession,
    college_id: uuid.UUID,
    name: str,
    code: str,
    description: str | None = None,
    actor: TenantContext | None = None,
) -> Department:
    name = (name or "").strip()
    code = normalize_code(code)

    if not name:
        raise ValidationError("Department name is required")
    if not code:
        raise ValidationError("Department code is required")

    if await get_department_by_code(session, college_id, code):
        raise ConflictError(f"Department code '{code}' is already in use in this college")

    department = Department(
        college_id=college_id,
        name=name,
        code=code,
        description=description,
        status=DepartmentStatus.ACTIVE,
    )
    session.add(department)
    record_activity(
        session, college_id, "DEPARTMENT_CREATED", "department", department.id,
        description=f"Department {name} ({code}) created",
        actor=actor,
    )

    try:
        await session.commit()
        await session.refresh(department)
    except IntegrityError:
        # Concurrent create with the same code lost the race at the unique constraint
        await session.rollback()
        raise ConflictError(f"Department code '{code}' is already in use in this college")

    logger.info(f"Department {code} created for college {college_id}")
    return department


# ============================================================================
# UPDATE
# ============================================================================
async def update_department(
    session: AsyncSession,
    college_id: uuid.UUID,
    department_id: uuid.UUID,
    name: str | None = None,
    code: str | None = None,
    description: str | None = None,
    status: DepartmentStatus | None = None,
    actor: TenantContext | None = None,
) -> Department:
    department = await get_department(session, college_id, department_id)
    changes = {}

    if code is not None and normalize_code(code) != department.code:
        raise ValidationError("Department code cannot be changed after creation")

    if status == DepartmentStatus.INACTIVE and department.status != DepartmentStatus.INACTIVE:
        # Deactivation reports dangling references, see deactivate_department
        raise ValidationError("Use DELETE /departments/{id} to deactivate a department")

    if name is not None:
        name = name.strip()
        if not name:
            raise ValidationError("Department name cannot be empty")
        changes["name"] = name
        department.name = name

    if description is not None:
        changes["description"] = description
        department.description = description

    if status is not None:
        changes["status"] = status.value
        department.status = status

    department.updated_at = datetime.now(timezone.utc)
    record_activity(
        session, college_id, "DEPARTMENT_UPDATED", "department", department.id,
        description=f"Department {department.name} updated",
        details=changes,
        actor=actor,
    )

    await session.commit()
    await session.refresh(department)
    return department


# ============================================================================
# DEACTIVATE (soft delete)
# ============================================================================
async def department_integrity_warnings(
    session: AsyncSession, department: Department
) -> List[ReferentialIntegrityWarning]:
    warnings: List[ReferentialIntegrityWarning] = []

    if department.hod_faculty_id:
        warnings.append(ReferentialIntegrityWarning(
            f"Inactive department {department.code} still names faculty {department.hod_faculty_id} as HOD",
            "department",
            department.id,
        ))

    result = await session.execute(
        select(func.count(FacultyAssignment.id)).where(
            (FacultyAssignment.department_id == department.id) &
            (FacultyAssignment.status == AssignmentStatus.ACTIVE)
        )
    )
    active_assignments = result.scalar_one()
    if active_assignments:
        warnings.append(ReferentialIntegrityWarning(
            f"{active_assignments} active faculty assignment(s) still reference inactive department {department.code}",
            "department",
            department.id,
        ))

    return warnings


async def deactivate_department(
    session: AsyncSession,
    college_id: uuid.UUID,
    department_id: uuid.UUID,
    actor: TenantContext | None = None,
) -> tuple[Department, List[ReferentialIntegrityWarning]]:
    department = await get_department(session, college_id, department_id)

    department.status = DepartmentStatus.INACTIVE
    department.updated_at = datetime.now(timezone.utc)
    warnings = await department_integrity_warnings(session, department)

    record_activity(
        session, college_id, "DEPARTMENT_DEACTIVATED", "department", department.id,
        description=f"Department {department.name} deactivated",
        details={"warnings": [w.message for w in warnings]},
        actor=actor,
    )
    await session.commit()
    await session.refresh(department)

    for warning in warnings:
        logger.warning(warning.message)

    return department, warnings


# ============================================================================
# HOD DESIGNATION
# ============================================================================
async def _departments_headed_by(session: AsyncSession, faculty_id: uuid.UUID) -> int:
    result = await session.execute(
        select(func.count(Department.id)).where(Department.hod_faculty_id == faculty_id)
    )
    return result.scalar_one()


async def _demote_if_not_heading(session: AsyncSession, faculty_id: uuid.UUID) -> None:
    faculty = await session.get(Faculty, faculty_id)
    if faculty and faculty.role == FacultyRole.HOD and await _departments_headed_by(session, faculty_id) == 0:
        faculty.role = FacultyRole.FACULTY


async def assign_hod(
    session: AsyncSession,
    college_id: uuid.UUID,
    department_id: uuid.UUID,
    faculty_id: uuid.UUID,
    actor: TenantContext | None = None,
) -> Department:
    """
    Points the department's HOD reference at a faculty member of the same college.
    Holding an assignment in the department is not required.
    """
    department = await get_department(session, college_id, department_id)

    result = await session.execute(
        select(Faculty).where(
            (Faculty.id == faculty_id) &
            (Faculty.college_id == college_id) &
            (Faculty.status == FacultyStatus.ACTIVE)
        )
    )
    hod = result.scalar_one_or_none()
    if not hod:
        raise NotFoundError("HOD faculty not found or not eligible")

    previous_hod_id = department.hod_faculty_id
    department.hod_faculty_id = hod.id
    department.updated_at = datetime.now(timezone.utc)
    hod.role = FacultyRole.HOD

    if previous_hod_id and previous_hod_id != hod.id:
        await session.flush()
        await _demote_if_not_heading(session, previous_hod_id)

    record_activity(
        session, college_id, "HOD_ASSIGNED", "department", department.id,
        description=f"HOD {hod.full_name} assigned to department {department.name}",
        details={"previous_hod_id": previous_hod_id, "new_hod_id": hod.id},
        actor=actor,
    )
    await session.commit()
    await session.refresh(department)

    logger.info(f"HOD {hod.email} assigned to department {department.code}")
    return department


async def remove_hod(
    session: AsyncSession,
    college_id: uuid.UUID,
    department_id: uuid.UUID,
    actor: TenantContext | None = None,
) -> Department:
    department = await get_department(session, college_id, department_id)

    if not department.hod_faculty_id:
        raise ConflictError("Department has no HOD assigned")

    previous_hod_id = department.hod_faculty_id
    department.hod_faculty_id = None
    department.updated_at = datetime.now(timezone.utc)
    await session.flush()
    await _demote_if_not_heading(session, previous_hod_id)

    record_activity(
        session, college_id, "HOD_REMOVED", "department", department.id,
        description=f"HOD removed from department {department.name}",
        details={"previous_hod_id": previous_hod_id},
        actor=actor,
    )
    await session.commit()
    await session.refresh(department)
    return department
