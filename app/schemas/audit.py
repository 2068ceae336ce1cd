from pydantic import BaseModel
from typing import Optional, Dict, Any
from uuid import UUID
from datetime import datetime

class AuditLogRead(BaseModel):
    id: UUID
    college_id: UUID
    action: str
    actor_id: Optional[UUID] = None
    actor_role: Optional[str] = None
    entity_type: str
    entity_id: Optional[str] = None
    description: Optional[str] = None
    details: Dict[str, Any] = {}
    timestamp: datetime

    class Config:
        from_attributes = True
