from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import JSON, DateTime, Enum, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column

from odontoped.models.base import Base


class AuditEntity(str, enum.Enum):
    patient = "patient"
    health_history = "health_history"
    treatment_plan = "treatment_plan"
    treatment_record = "treatment_record"
    appointment = "appointment"
    site_settings = "site_settings"


class AuditAction(str, enum.Enum):
    create = "create"
    update = "update"
    delete = "delete"
    form_shared = "form_shared"
    form_signed = "form_signed"


def _string_enum(enum_cls: type[enum.Enum], length: int) -> Enum:
    return Enum(
        enum_cls,
        native_enum=False,
        length=length,
        values_callable=lambda members: [member.value for member in members],
    )


class AuditLog(Base):
    """One mutation of a back office record.

    ``patient_id`` is set for every entry that belongs to a patient's chart,
    including sub-records, so a chart's history is one indexed lookup.
    ``actor_user_id`` is empty for guardian actions on the public form.
    """

    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    actor_user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    actor_email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    action: Mapped[AuditAction] = mapped_column(_string_enum(AuditAction, 32), nullable=False)
    entity_type: Mapped[AuditEntity] = mapped_column(
        _string_enum(AuditEntity, 50), nullable=False
    )
    entity_id: Mapped[str] = mapped_column(String(64), nullable=False)
    patient_id: Mapped[int | None] = mapped_column(
        ForeignKey("patients.id"), nullable=True, index=True
    )
    request_id: Mapped[str | None] = mapped_column(String(120), nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    before_json: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    after_json: Mapped[dict | None] = mapped_column(JSON, nullable=True)
