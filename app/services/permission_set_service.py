# app/services/permission_set_service.py

from datetime import datetime, timezone
from typing import List, Optional
import uuid

from loguru import logger
from sqlmodel import select
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError

from app.core.constants import DEFAULT_PERMISSION_SETS
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.faculty_assignment import FacultyAssignment
from app.models.permission_set import CAPABILITY_FLAGS, PermissionSet
from app.schemas.auth import TenantContext
from app.services.audit_service import record_activity


def name_key(name: str) -> str:
    return name.strip().lower()


def _check_flags(flags: Optional[dict]) -> dict:
    flags = flags or {}
    unknown = sorted(set(flags) - set(CAPABILITY_FLAGS))
    if unknown:
        raise ValidationError(f"Unknown capability flag(s): {', '.join(unknown)}")
    return {flag: bool(value) for flag, value in flags.items()}


# ------------------------------------------------------------
# LOOKUPS
# ------------------------------------------------------------
async def get_permission_set(session: AsyncSession, college_id: uuid.UUID, permission_set_id: uuid.UUID) -> PermissionSet:
    result = await session.execute(
        select(PermissionSet).where(
            (PermissionSet.id == permission_set_id) & (PermissionSet.college_id == college_id)
        )
    )
    permission_set = result.scalar_one_or_none()
    if not permission_set:
        raise NotFoundError("Permission set not found")
    return permission_set


async def get_permission_set_by_name(session: AsyncSession, college_id: uuid.UUID, name: str) -> PermissionSet | None:
    result = await session.execute(
        select(PermissionSet).where(
            (PermissionSet.college_id == college_id) &
            (PermissionSet.name_key == name_key(name))
        )
    )
    return result.scalars().first()


async def list_permission_sets(session: AsyncSession, college_id: uuid.UUID) -> List[PermissionSet]:
    result = await session.execute(
        select(PermissionSet).where(PermissionSet.college_id == college_id).order_by(PermissionSet.name.asc())
    )
    return list(result.scalars().all())


# ------------------------------------------------------------
# CREATE
# ------------------------------------------------------------
def _build_permission_set(college_id: uuid.UUID, name: str, description: str | None, flags: dict) -> PermissionSet:
    return PermissionSet(
        college_id=college_id, name=name, name_key=name_key(name), description=description, **flags
    )


async def create_permission_set(
    session: AsyncSession,
    college_id: uuid.UUID,
    name: str,
    description: str | None = None,
    flags: dict | None = None,
    actor: TenantContext | None = None,
) -> PermissionSet:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Permission set name is required")
    flags = _check_flags(flags)

    if await get_permission_set_by_name(session, college_id, name):
        raise ConflictError(f'Permission set "{name}" already exists')

    permission_set = _build_permission_set(college_id, name, description, flags)
    session.add(permission_set)
    record_activity(
        session, college_id, "PERMISSION_SET_CREATED", "permission_set", permission_set.id,
        description=f'Permission set "{name}" created',
        details=flags,
        actor=actor,
    )

    try:
        await session.commit()
        await session.refresh(permission_set)
    except IntegrityError:
        await session.rollback()
        raise ConflictError(f'Permission set "{name}" already exists')

    return permission_set


async def initialize_default_permission_sets(
    session: AsyncSession,
    college_id: uuid.UUID,
    actor: TenantContext | None = None,
) -> List[PermissionSet]:
    """
    Seeds the standard sets for a college. Defaults whose name is already
    taken are skipped, so calling this twice never duplicates entries.
    Returns only the sets created by this call.
    """
    existing = {ps.name_key for ps in await list_permission_sets(session, college_id)}

    created: List[PermissionSet] = []
    for default in DEFAULT_PERMISSION_SETS:
        if name_key(default["name"]) in existing:
            continue
        permission_set = _build_permission_set(
            college_id, default["name"], default["description"], _check_flags(default["flags"])
        )
        session.add(permission_set)
        created.append(permission_set)

    if not created:
        return created

    record_activity(
        session, college_id, "PERMISSION_SETS_INITIALIZED", "permission_set",
        description=f"{len(created)} default permission set(s) created",
        details={"names": [ps.name for ps in created]},
        actor=actor,
    )

    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise ConflictError("Default permission sets were created concurrently; retry")

    for permission_set in created:
        await session.refresh(permission_set)

    logger.info(f"Initialized {len(created)} default permission set(s) for college {college_id}")
    return created


# ------------------------------------------------------------
# UPDATE
# ------------------------------------------------------------
async def update_permission_set(
    session: AsyncSession,
    college_id: uuid.UUID,
    permission_set_id: uuid.UUID,
    name: str | None = None,
    description: str | None = None,
    flags: dict | None = None,
    actor: TenantContext | None = None,
) -> PermissionSet:
    permission_set = await get_permission_set(session, college_id, permission_set_id)
    flags = _check_flags(flags)

    if name is not None:
        name = name.strip()
        if not name:
            raise ValidationError("Permission set name cannot be empty")
        duplicate = await get_permission_set_by_name(session, college_id, name)
        if duplicate and duplicate.id != permission_set.id:
            raise ConflictError(f'Permission set "{name}" already exists')
        permission_set.name = name
        permission_set.name_key = name_key(name)

    if description is not None:
        permission_set.description = description

    for flag, value in flags.items():
        setattr(permission_set, flag, value)

    permission_set.updated_at = datetime.now(timezone.utc)
    record_activity(
        session, college_id, "PERMISSION_SET_UPDATED", "permission_set", permission_set.id,
        description=f'Permission set "{permission_set.name}" updated',
        details={"name": name, "description": description, **flags},
        actor=actor,
    )

    try:
        await session.commit()
        await session.refresh(permission_set)
    except IntegrityError:
        await session.rollback()
        raise ConflictError(f'Permission set "{name}" already exists')

    return permission_set


# ------------------------------------------------------------
# DELETE (hard, refused while in use)
# ------------------------------------------------------------
async def delete_permission_set(
    session: AsyncSession,
    college_id: uuid.UUID,
    permission_set_id: uuid.UUID,
    actor: TenantContext | None = None,
) -> None:
    permission_set = await get_permission_set(session, college_id, permission_set_id)

    result = await session.execute(
        select(func.count(FacultyAssignment.id)).where(FacultyAssignment.permission_set_id == permission_set.id)
    )
    usage_count = result.scalar_one()
    if usage_count:
        raise ConflictError(
            f'Cannot delete permission set "{permission_set.name}". '
            f"It is assigned to {usage_count} faculty assignment(s)."
        )

    record_activity(
        session, college_id, "PERMISSION_SET_DELETED", "permission_set", permission_set.id,
        description=f'Permission set "{permission_set.name}" deleted',
        actor=actor,
    )
    await session.delete(permission_set)
    await session.commit()
