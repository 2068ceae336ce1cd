# app/api/endpoints/departments.py

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db_session
from app.core.constants import GOVERNANCE_READERS, GOVERNANCE_WRITERS
from app.core.rbac import AllowRoles
from app.models.enums import ActorRole
from app.schemas.auth import TenantContext
from app.schemas.department import (
    AssignHodRequest,
    DepartmentCreate,
    DepartmentDeactivateResponse,
    DepartmentRead,
    DepartmentUpdate,
    IntegrityWarningRead,
)
from app.schemas.faculty_assignment import AssignmentRead, HeadedDepartmentRead
from app.services.department_service import (
    assign_hod,
    count_assignments_by_department,
    create_department,
    deactivate_department,
    get_department,
    list_departments,
    list_departments_headed_by,
    remove_hod,
    update_department,
)

router = APIRouter(
    prefix="/api/governance/departments",
    tags=["Departments"]
)


# 1️⃣ Create department
@router.post("", response_model=DepartmentRead, status_code=201)
async def create_department_endpoint(
    payload: DepartmentCreate,
    actor: TenantContext = Depends(AllowRoles(*GOVERNANCE_WRITERS)),
    session: AsyncSession = Depends(get_db_session),
):
    department = await create_department(
        session, actor.college_id, payload.name, payload.code, payload.description, actor=actor
    )
    return DepartmentRead.model_validate(department).model_copy(update={"assignment_count": 0})


# 2️⃣ List departments with assignment counts
@router.get("", response_model=List[DepartmentRead])
async def list_departments_endpoint(
    actor: TenantContext = Depends(AllowRoles(*GOVERNANCE_READERS)),
    session: AsyncSession = Depends(get_db_session),
):
    departments = await list_departments(session, actor.college_id)
    counts = await count_assignments_by_department(session, actor.college_id)
    return [
        DepartmentRead.model_validate(d).model_copy(update={"assignment_count": counts.get(d.id, 0)})
        for d in departments
    ]


# HOD view: only the departments the caller heads.
# Declared before "/{department_id}" so the path is not read as an id.
@router.get("/my-departments", response_model=List[HeadedDepartmentRead])
async def my_departments_endpoint(
    actor: TenantContext = Depends(AllowRoles(ActorRole.COLLEGE_HOD)),
    session: AsyncSession = Depends(get_db_session),
):
    headed = await list_departments_headed_by(session, actor.college_id, actor.actor_id)
    return [
        HeadedDepartmentRead(
            department=DepartmentRead.model_validate(department).model_copy(
                update={"assignment_count": len(assignments)}
            ),
            assignments=[AssignmentRead.model_validate(a) for a in assignments],
        )
        for department, assignments in headed
    ]


# 3️⃣ Single department
@router.get("/{department_id}", response_model=DepartmentRead)
async def get_department_endpoint(
    department_id: UUID,
    actor: TenantContext = Depends(AllowRoles(*GOVERNANCE_READERS)),
    session: AsyncSession = Depends(get_db_session),
):
    return await get_department(session, actor.college_id, department_id)


# 4️⃣ Update (code is fixed)
@router.put("/{department_id}", response_model=DepartmentRead)
async def update_department_endpoint(
    department_id: UUID,
    payload: DepartmentUpdate,
    actor: TenantContext = Depends(AllowRoles(*GOVERNANCE_WRITERS)),
    session: AsyncSession = Depends(get_db_session),
):
    return await update_department(
        session,
        actor.college_id,
        department_id,
        name=payload.name,
        code=payload.code,
        description=payload.description,
        status=payload.status,
        actor=actor,
    )


# 5️⃣ Soft delete
@router.delete("/{department_id}", response_model=DepartmentDeactivateResponse)
async def deactivate_department_endpoint(
    department_id: UUID,
    actor: TenantContext = Depends(AllowRoles(*GOVERNANCE_WRITERS)),
    session: AsyncSession = Depends(get_db_session),
):
    department, warnings = await deactivate_department(session, actor.college_id, department_id, actor=actor)
    return DepartmentDeactivateResponse(
        department=DepartmentRead.model_validate(department),
        warnings=[IntegrityWarningRead(**w.as_dict()) for w in warnings],
    )


# 6️⃣ HOD designation
@router.put("/{department_id}/assign-hod", response_model=DepartmentRead)
async def assign_hod_endpoint(
    department_id: UUID,
    payload: AssignHodRequest,
    actor: TenantContext = Depends(AllowRoles(*GOVERNANCE_WRITERS)),
    session: AsyncSession = Depends(get_db_session),
):
    return await assign_hod(session, actor.college_id, department_id, payload.faculty_id, actor=actor)


@router.delete("/{department_id}/remove-hod", response_model=DepartmentRead)
async def remove_hod_endpoint(
    department_id: UUID,
    actor: TenantContext = Depends(AllowRoles(*GOVERNANCE_WRITERS)),
    session: AsyncSession = Depends(get_db_session),
):
    return await remove_hod(session, actor.college_id, department_id, actor=actor)
