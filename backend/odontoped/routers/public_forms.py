from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session

from odontoped.core.security import InvalidTokenError, decode_form_token
from odontoped.core.settings import settings
from odontoped.db.session import get_db
from odontoped.deps import jwt_secret
from odontoped.models.audit_log import AuditAction, AuditEntity
from odontoped.models.base import as_utc
from odontoped.models.patient import Patient
from odontoped.schemas.intake import (
    FormSignatureIn,
    FormSignedOut,
    HealthHistoryOut,
    PublicFormOut,
    PublicPatientOut,
    TreatmentPlanOut,
)
from odontoped.services.audit import log_event
from odontoped.services.intake import (
    FORM_NOT_FOUND,
    FormAlreadySignedError,
    ensure_unsigned,
    sign_form,
)

router = APIRouter(prefix="/public/forms", tags=["public"])


def _patient_for_token(db: Session, token: str) -> Patient:
    try:
        patient_id = decode_form_token(token, secret=jwt_secret(), alg=settings.jwt_alg)
    except InvalidTokenError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=FORM_NOT_FOUND)
    patient = db.get(Patient, patient_id)
    if not patient or patient.deleted_at is not None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=FORM_NOT_FOUND)
    return patient


@router.get("/{token}", response_model=PublicFormOut)
def open_form(token: str, db: Session = Depends(get_db)):
    patient = _patient_for_token(db, token)
    try:
        ensure_unsigned(patient)
    except FormAlreadySignedError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    history = patient.health_history
    plan = patient.treatment_plan
    return PublicFormOut(
        patient=PublicPatientOut.model_validate(patient),
        status=patient.status,
        health_history=HealthHistoryOut.model_validate(history) if history else None,
        treatment_plan=TreatmentPlanOut.model_validate(plan) if plan else None,
    )


@router.post("/{token}/sign", response_model=FormSignedOut)
def submit_signature(
    token: str,
    payload: FormSignatureIn,
    request: Request,
    db: Session = Depends(get_db),
    request_id: str | None = Header(default=None),
):
    patient = _patient_for_token(db, token)
    before_status = patient.status.value
    try:
        sign_form(patient, payload.assinatura, datetime.now(timezone.utc))
    except FormAlreadySignedError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    db.add(patient)
    log_event(
        db,
        actor=None,
        action=AuditAction.form_signed,
        entity_type=AuditEntity.patient,
        entity_id=patient.id,
        before_data={"status": before_status},
        after_data={
            "status": patient.status.value,
            "assinatura_timestamp": patient.assinatura_timestamp.isoformat(),
        },
        request_id=request_id,
        ip_address=request.client.host if request.client else None,
    )
    db.commit()
    db.refresh(patient)
    return FormSignedOut(
        status=patient.status, assinatura_timestamp=as_utc(patient.assinatura_timestamp)
    )
