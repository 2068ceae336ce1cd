# app/api/endpoints/audit_logs.py

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from app.api.deps import get_db_session
from app.core.rbac import AllowRoles
from app.models.enums import ActorRole
from app.schemas.audit import AuditLogRead
from app.schemas.auth import TenantContext
from app.services.audit_service import list_activity

router = APIRouter(prefix="/api/governance", tags=["Audit & Logs"])

# -------------------------------------------------------------------
# VIEW GOVERNANCE AUDIT TRAIL (college admin only)
# -------------------------------------------------------------------
@router.get("/audit-logs", response_model=List[AuditLogRead])
async def get_audit_logs(
    action: Optional[str] = Query(None, description="Filter by action, e.g. FACULTY_CREATED"),
    entity_type: Optional[str] = Query(None, description="Filter by entity type"),
    limit: int = Query(100, ge=1, le=500),
    actor: TenantContext = Depends(AllowRoles(ActorRole.COLLEGE_ADMIN)),
    session: AsyncSession = Depends(get_db_session),
):
    return await list_activity(session, actor.college_id, action=action, entity_type=entity_type, limit=limit)
