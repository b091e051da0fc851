from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from odontoped.models.audit_log import AuditAction, AuditEntity


class AuditLogOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: datetime
    actor_user_id: Optional[int] = None
    actor_email: Optional[str] = None
    action: AuditAction
    entity_type: AuditEntity
    entity_id: str
    patient_id: Optional[int] = None
    request_id: Optional[str] = None
    ip_address: Optional[str] = None
    before_json: Optional[dict] = None
    after_json: Optional[dict] = None
