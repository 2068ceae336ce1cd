from pydantic import BaseModel, ConfigDict
from uuid import UUID

from app.models.enums import ActorRole


# -------------------------------------------------------------------
# TENANT CONTEXT
# Decoded from the bearer token issued by the identity provider.
# -------------------------------------------------------------------
class TenantContext(BaseModel):
    actor_id: UUID
    college_id: UUID
    role: ActorRole

    model_config = ConfigDict(frozen=True)
