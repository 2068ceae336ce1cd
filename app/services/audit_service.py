# app/services/audit_service.py

from uuid import UUID
from typing import Optional, Dict, Any, List

from fastapi.encoders import jsonable_encoder
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models.audit import AuditLog
from app.schemas.auth import TenantContext


def record_activity(
    session: AsyncSession,
    college_id: UUID,
    action: str,
    entity_type: str,
    entity_id: Optional[Any] = None,
    description: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    actor: Optional[TenantContext] = None,
) -> AuditLog:
    """
    Stages an audit row on the caller's session.
    It is committed (or rolled back) together with the mutation it describes.
    """
    log_entry = AuditLog(
        college_id=college_id,
        actor_id=actor.actor_id if actor else None,
        actor_role=actor.role.value if actor else None,
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id) if entity_id is not None else None,
        description=description,
        details=jsonable_encoder(details or {}),
    )
    session.add(log_entry)
    return log_entry


async def list_activity(
    session: AsyncSession,
    college_id: UUID,
    action: Optional[str] = None,
    entity_type: Optional[str] = None,
    limit: int = 100,
) -> List[AuditLog]:
    query = (
        select(AuditLog)
        .where(AuditLog.college_id == college_id)
        .order_by(AuditLog.timestamp.desc())
        .limit(limit)
    )
    if action:
        query = query.where(AuditLog.action == action)
    if entity_type:
        query = query.where(AuditLog.entity_type == entity_type)

    result = await session.execute(query)
    return list(result.scalars().all())
