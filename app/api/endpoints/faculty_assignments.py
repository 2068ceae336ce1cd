# app/api/endpoints/faculty_assignments.py

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db_session
from app.core.constants import GOVERNANCE_READERS, GOVERNANCE_WRITERS
from app.core.rbac import AllowRoles
from app.models.enums import ActorRole
from app.schemas.auth import TenantContext
from app.schemas.department import IntegrityWarningRead
from app.schemas.faculty_assignment import (
    AssignmentCreate,
    AssignmentRead,
    AssignmentRemoveResponse,
    AssignmentUpdate,
    CapabilitiesRead,
)
from app.services.department_service import get_department
from app.services.faculty_assignment_service import (
    create_faculty_assignment,
    effective_capabilities,
    list_assignments_for_department,
    list_assignments_for_faculty,
    remove_faculty_assignment,
    update_faculty_assignment,
)

router = APIRouter(
    prefix="/api/governance/faculty-assignments",
    tags=["Faculty Assignments"]
)


async def _capabilities_read(
    session: AsyncSession, college_id: UUID, faculty_id: UUID, department_id: UUID
) -> CapabilitiesRead:
    # Tenant check; capabilities themselves are keyed only by the pair
    await get_department(session, college_id, department_id)
    capabilities = await effective_capabilities(session, faculty_id, department_id)
    return CapabilitiesRead(
        faculty_id=faculty_id,
        department_id=department_id,
        has_access=capabilities.has_any,
        capabilities=capabilities,
    )


# ------------------------------------------------------------
# ADMIN: grant / swap / revoke
# ------------------------------------------------------------
@router.post("", response_model=AssignmentRead, status_code=201)
async def create_assignment_endpoint(
    payload: AssignmentCreate,
    actor: TenantContext = Depends(AllowRoles(*GOVERNANCE_WRITERS)),
    session: AsyncSession = Depends(get_db_session),
):
    return await create_faculty_assignment(
        session,
        actor.college_id,
        payload.faculty_id,
        payload.department_id,
        payload.permission_set_id,
        subjects=payload.subjects,
        actor=actor,
    )


@router.put("/{assignment_id}", response_model=AssignmentRead)
async def update_assignment_endpoint(
    assignment_id: UUID,
    payload: AssignmentUpdate,
    actor: TenantContext = Depends(AllowRoles(*GOVERNANCE_WRITERS)),
    session: AsyncSession = Depends(get_db_session),
):
    return await update_faculty_assignment(
        session,
        actor.college_id,
        assignment_id,
        permission_set_id=payload.permission_set_id,
        subjects=payload.subjects,
        status=payload.status,
        actor=actor,
    )


@router.delete("", response_model=AssignmentRemoveResponse)
async def remove_assignment_endpoint(
    faculty_id: UUID = Query(...),
    department_id: UUID = Query(...),
    actor: TenantContext = Depends(AllowRoles(*GOVERNANCE_WRITERS)),
    session: AsyncSession = Depends(get_db_session),
):
    warnings = await remove_faculty_assignment(
        session, actor.college_id, faculty_id, department_id, actor=actor
    )
    return AssignmentRemoveResponse(
        detail="Faculty removed from department",
        warnings=[IntegrityWarningRead(**w.as_dict()) for w in warnings],
    )


# ------------------------------------------------------------
# READS
# ------------------------------------------------------------
@router.get("/by-department/{department_id}", response_model=List[AssignmentRead])
async def assignments_by_department(
    department_id: UUID,
    actor: TenantContext = Depends(AllowRoles(*GOVERNANCE_READERS)),
    session: AsyncSession = Depends(get_db_session),
):
    return await list_assignments_for_department(session, actor.college_id, department_id)


@router.get("/by-faculty/{faculty_id}", response_model=List[AssignmentRead])
async def assignments_by_faculty(
    faculty_id: UUID,
    actor: TenantContext = Depends(AllowRoles(*GOVERNANCE_READERS)),
    session: AsyncSession = Depends(get_db_session),
):
    return await list_assignments_for_faculty(session, actor.college_id, faculty_id)


@router.get("/capabilities", response_model=CapabilitiesRead)
async def capabilities_for_pair(
    faculty_id: UUID = Query(...),
    department_id: UUID = Query(...),
    actor: TenantContext = Depends(AllowRoles(*GOVERNANCE_READERS)),
    session: AsyncSession = Depends(get_db_session),
):
    return await _capabilities_read(session, actor.college_id, faculty_id, department_id)


# ------------------------------------------------------------
# FACULTY SELF-SERVICE
# ------------------------------------------------------------
@router.get("/my-assignments", response_model=List[AssignmentRead])
async def my_assignments(
    actor: TenantContext = Depends(AllowRoles(ActorRole.FACULTY)),
    session: AsyncSession = Depends(get_db_session),
):
    return await list_assignments_for_faculty(session, actor.college_id, actor.actor_id)


@router.get("/my-capabilities/{department_id}", response_model=CapabilitiesRead)
async def my_capabilities(
    department_id: UUID,
    actor: TenantContext = Depends(AllowRoles(ActorRole.FACULTY)),
    session: AsyncSession = Depends(get_db_session),
):
    return await _capabilities_read(session, actor.college_id, actor.actor_id, department_id)
