"""Intake form workflow and dashboard counts.

A patient's form starts as ``rascunho``, becomes ``enviado`` when staff
share the signing link and ``assinado`` once the guardian signs it. A signed
form cannot be shared or signed again.
"""

from __future__ import annotations

import enum
from datetime import datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from odontoped.models.patient import Patient, PatientFormStatus

FORM_NOT_FOUND = "Formulário não encontrado"
FORM_ALREADY_SIGNED = "Este formulário já foi assinado"


class FormAlreadySignedError(Exception):
    pass


class DashboardPeriod(str, enum.Enum):
    all = "all"
    last_7_days = "7days"
    last_15_days = "15days"
    last_30_days = "30days"
    last_90_days = "90days"


PERIOD_DAYS = {
    DashboardPeriod.last_7_days: 7,
    DashboardPeriod.last_15_days: 15,
    DashboardPeriod.last_30_days: 30,
    DashboardPeriod.last_90_days: 90,
}


def period_start(period: DashboardPeriod, now: datetime) -> datetime | None:
    days = PERIOD_DAYS.get(period)
    if days is None:
        return None
    return now - timedelta(days=days)


def ensure_unsigned(patient: Patient) -> None:
    if patient.status == PatientFormStatus.signed:
        raise FormAlreadySignedError(FORM_ALREADY_SIGNED)


def mark_form_shared(patient: Patient) -> bool:
    """Move a draft form to ``enviado``. Returns whether the status changed."""
    ensure_unsigned(patient)
    if patient.status == PatientFormStatus.sent:
        return False
    patient.status = PatientFormStatus.sent
    return True


def sign_form(patient: Patient, signature: str, now: datetime) -> None:
    ensure_unsigned(patient)
    patient.status = PatientFormStatus.signed
    patient.assinatura_base64 = signature
    patient.assinatura_timestamp = now


def status_counts(db: Session, *, since: datetime | None = None) -> dict[str, int]:
    stmt = (
        select(Patient.status, func.count(Patient.id))
        .where(Patient.deleted_at.is_(None))
        .group_by(Patient.status)
    )
    if since is not None:
        stmt = stmt.where(Patient.created_at >= since)
    counts = {status.value: 0 for status in PatientFormStatus}
    for status, count in db.execute(stmt):
        counts[status.value] = count
    return {"total": sum(counts.values()), **counts}
