# app/core/rbac.py

from fastapi import Depends, HTTPException, status
from app.api.deps import get_current_actor
from app.models.enums import ActorRole
from app.schemas.auth import TenantContext

def AllowRoles(*allowed_roles):
    """
    Flexible RBAC on the tenant token role:
    - Accepts ActorRole values or raw strings
    - Case-insensitive
    - College admin bypasses everything
    """

    def normalize(role) -> str:
        if isinstance(role, ActorRole):
            return role.value.lower().strip()
        return str(role).lower().strip()

    normalized_allowed = {normalize(r) for r in allowed_roles}

    async def role_checker(actor: TenantContext = Depends(get_current_actor)):
        user_role = normalize(actor.role)

        # Admin bypass
        if user_role == normalize(ActorRole.COLLEGE_ADMIN):
            return actor

        if user_role not in normalized_allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied for role '{actor.role.value}'"
            )

        return actor

    return role_checker
