# app/api/endpoints/permission_sets.py

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db_session
from app.core.constants import GOVERNANCE_READERS, GOVERNANCE_WRITERS
from app.core.rbac import AllowRoles
from app.models.permission_set import CAPABILITY_FLAGS
from app.schemas.auth import TenantContext
from app.schemas.permission_set import (
    PermissionSetCreate,
    PermissionSetRead,
    PermissionSetUpdate,
)
from app.services.permission_set_service import (
    create_permission_set,
    delete_permission_set,
    get_permission_set,
    initialize_default_permission_sets,
    list_permission_sets,
    update_permission_set,
)

router = APIRouter(
    prefix="/api/governance/permission-sets",
    tags=["Permission Sets"]
)


@router.post("", response_model=PermissionSetRead, status_code=201)
async def create_permission_set_endpoint(
    payload: PermissionSetCreate,
    actor: TenantContext = Depends(AllowRoles(*GOVERNANCE_WRITERS)),
    session: AsyncSession = Depends(get_db_session),
):
    flags = payload.model_dump(include=set(CAPABILITY_FLAGS))
    return await create_permission_set(
        session, actor.college_id, payload.name, payload.description, flags, actor=actor
    )


# Must be declared before "/{permission_set_id}" routes
@router.post("/initialize-defaults", response_model=List[PermissionSetRead], status_code=201)
async def initialize_defaults_endpoint(
    actor: TenantContext = Depends(AllowRoles(*GOVERNANCE_WRITERS)),
    session: AsyncSession = Depends(get_db_session),
):
    return await initialize_default_permission_sets(session, actor.college_id, actor=actor)


@router.get("", response_model=List[PermissionSetRead])
async def list_permission_sets_endpoint(
    actor: TenantContext = Depends(AllowRoles(*GOVERNANCE_READERS)),
    session: AsyncSession = Depends(get_db_session),
):
    return await list_permission_sets(session, actor.college_id)


@router.get("/{permission_set_id}", response_model=PermissionSetRead)
async def get_permission_set_endpoint(
    permission_set_id: UUID,
    actor: TenantContext = Depends(AllowRoles(*GOVERNANCE_READERS)),
    session: AsyncSession = Depends(get_db_session),
):
    return await get_permission_set(session, actor.college_id, permission_set_id)


@router.put("/{permission_set_id}", response_model=PermissionSetRead)
async def update_permission_set_endpoint(
    permission_set_id: UUID,
    payload: PermissionSetUpdate,
    actor: TenantContext = Depends(AllowRoles(*GOVERNANCE_WRITERS)),
    session: AsyncSession = Depends(get_db_session),
):
    return await update_permission_set(
        session,
        actor.college_id,
        permission_set_id,
        name=payload.name,
        description=payload.description,
        flags=payload.flag_changes(),
        actor=actor,
    )


@router.delete("/{permission_set_id}")
async def delete_permission_set_endpoint(
    permission_set_id: UUID,
    actor: TenantContext = Depends(AllowRoles(*GOVERNANCE_WRITERS)),
    session: AsyncSession = Depends(get_db_session),
):
    await delete_permission_set(session, actor.college_id, permission_set_id, actor=actor)
    return {"detail": "Permission set deleted successfully"}
