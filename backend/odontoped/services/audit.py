from __future__ import annotations

import uuid
from datetime import date
from typing import Any

from sqlalchemy import inspect
from sqlalchemy.orm import Session

from odontoped.models.audit_log import AuditAction, AuditEntity, AuditLog
from odontoped.models.user import User

# Signature images are recorded as present or absent only.
REDACTED_COLUMNS = {"assinatura_base64", "assinatura_dentista"}


def _jsonable(value: Any) -> Any:
    if hasattr(value, "value"):
        return value.value
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, uuid.UUID):
        return str(value)
    return value


def snapshot_model(obj: Any | None) -> dict | None:
    if obj is None:
        return None
    data: dict[str, Any] = {}
    mapper = inspect(obj).mapper
    for column in mapper.columns:
        key = column.key
        value = getattr(obj, key)
        if key in REDACTED_COLUMNS:
            data[key] = value is not None
        else:
            data[key] = _jsonable(value)
    return data


def log_event(
    db: Session,
    *,
    actor: User | None,
    action: AuditAction,
    entity_type: AuditEntity,
    entity_id: Any,
    patient_id: int | None = None,
    before_obj: Any | None = None,
    after_obj: Any | None = None,
    before_data: dict | None = None,
    after_data: dict | None = None,
    request_id: str | None = None,
    ip_address: str | None = None,
) -> AuditLog:
    if patient_id is None and entity_type == AuditEntity.patient:
        patient_id = int(entity_id)
    entry = AuditLog(
        actor_user_id=actor.id if actor else None,
        actor_email=actor.email if actor else None,
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id),
        patient_id=patient_id,
        request_id=request_id,
        ip_address=ip_address,
        before_json=before_data if before_data is not None else snapshot_model(before_obj),
        after_json=after_data if after_data is not None else snapshot_model(after_obj),
    )
    db.add(entry)
    return entry
