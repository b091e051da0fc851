from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from odontoped.core.security import create_form_token
from odontoped.core.settings import settings
from odontoped.db.session import get_db
from odontoped.deps import get_current_user, jwt_secret
from odontoped.models.audit_log import AuditAction, AuditEntity
from odontoped.models.health_history import HealthHistory
from odontoped.models.patient import Patient
from odontoped.models.treatment import TreatmentPlan, TreatmentRecord
from odontoped.models.user import User
from odontoped.schemas.intake import (
    FormLinkOut,
    HealthHistoryIn,
    HealthHistoryOut,
    TreatmentPlanIn,
    TreatmentPlanOut,
    TreatmentRecordCreate,
    TreatmentRecordOut,
    TreatmentRecordUpdate,
)
from odontoped.services.audit import log_event, snapshot_model
from odontoped.services.intake import FormAlreadySignedError, mark_form_shared

router = APIRouter(prefix="/patients/{patient_id}", tags=["intake"])


def _get_patient_or_404(db: Session, patient_id: int) -> Patient:
    patient = db.get(Patient, patient_id)
    if not patient or patient.deleted_at is not None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Patient not found")
    return patient


def _get_record_or_404(db: Session, patient_id: int, record_id: int) -> TreatmentRecord:
    record = db.get(TreatmentRecord, record_id)
    if not record or record.patient_id != patient_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Record not found")
    return record


@router.get("/health-history", response_model=HealthHistoryOut | None)
def get_health_history(
    patient_id: int,
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
):
    patient = _get_patient_or_404(db, patient_id)
    return patient.health_history


@router.put("/health-history", response_model=HealthHistoryOut)
def save_health_history(
    patient_id: int,
    payload: HealthHistoryIn,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    request_id: str | None = Header(default=None),
):
    patient = _get_patient_or_404(db, patient_id)
    history = patient.health_history
    before_data = snapshot_model(history)
    if history is None:
        history = HealthHistory(patient_id=patient.id)
    for field, value in payload.column_values().items():
        setattr(history, field, value)
    db.add(history)
    db.flush()
    log_event(
        db,
        actor=user,
        action=AuditAction.create if before_data is None else AuditAction.update,
        entity_type=AuditEntity.health_history,
        entity_id=history.id,
        patient_id=patient.id,
        before_data=before_data,
        after_obj=history,
        request_id=request_id,
        ip_address=request.client.host if request.client else None,
    )
    db.commit()
    db.refresh(history)
    return history


@router.get("/treatment-plan", response_model=TreatmentPlanOut | None)
def get_treatment_plan(
    patient_id: int,
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
):
    patient = _get_patient_or_404(db, patient_id)
    return patient.treatment_plan


@router.put("/treatment-plan", response_model=TreatmentPlanOut)
def save_treatment_plan(
    patient_id: int,
    payload: TreatmentPlanIn,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    request_id: str | None = Header(default=None),
):
    patient = _get_patient_or_404(db, patient_id)
    plan = patient.treatment_plan
    before_data = snapshot_model(plan)
    if plan is None:
        plan = TreatmentPlan(patient_id=patient.id)
    plan.plano_tratamento = payload.plano_tratamento
    db.add(plan)
    db.flush()
    log_event(
        db,
        actor=user,
        action=AuditAction.create if before_data is None else AuditAction.update,
        entity_type=AuditEntity.treatment_plan,
        entity_id=plan.id,
        patient_id=patient.id,
        before_data=before_data,
        after_obj=plan,
        request_id=request_id,
        ip_address=request.client.host if request.client else None,
    )
    db.commit()
    db.refresh(plan)
    return plan


@router.get("/treatment-records", response_model=list[TreatmentRecordOut])
def list_treatment_records(
    patient_id: int,
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
):
    _get_patient_or_404(db, patient_id)
    stmt = (
        select(TreatmentRecord)
        .where(TreatmentRecord.patient_id == patient_id)
        .order_by(TreatmentRecord.data_realizacao.desc(), TreatmentRecord.id.desc())
    )
    return list(db.scalars(stmt))


@router.post(
    "/treatment-records",
    response_model=TreatmentRecordOut,
    status_code=status.HTTP_201_CREATED,
)
def create_treatment_record(
    patient_id: int,
    payload: TreatmentRecordCreate,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    request_id: str | None = Header(default=None),
):
    _get_patient_or_404(db, patient_id)
    record = TreatmentRecord(patient_id=patient_id, **payload.model_dump())
    db.add(record)
    db.flush()
    log_event(
        db,
        actor=user,
        action=AuditAction.create,
        entity_type=AuditEntity.treatment_record,
        entity_id=record.id,
        patient_id=patient_id,
        after_obj=record,
        request_id=request_id,
        ip_address=request.client.host if request.client else None,
    )
    db.commit()
    db.refresh(record)
    return record


@router.patch("/treatment-records/{record_id}", response_model=TreatmentRecordOut)
def update_treatment_record(
    patient_id: int,
    record_id: int,
    payload: TreatmentRecordUpdate,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    request_id: str | None = Header(default=None),
):
    _get_patient_or_404(db, patient_id)
    record = _get_record_or_404(db, patient_id, record_id)
    before_data = snapshot_model(record)
    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is None:
            continue
        setattr(record, field, value)
    db.add(record)
    db.flush()
    log_event(
        db,
        actor=user,
        action=AuditAction.update,
        entity_type=AuditEntity.treatment_record,
        entity_id=record.id,
        patient_id=patient_id,
        before_data=before_data,
        after_obj=record,
        request_id=request_id,
        ip_address=request.client.host if request.client else None,
    )
    db.commit()
    db.refresh(record)
    return record


@router.delete("/treatment-records/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_treatment_record(
    patient_id: int,
    record_id: int,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    request_id: str | None = Header(default=None),
):
    _get_patient_or_404(db, patient_id)
    record = _get_record_or_404(db, patient_id, record_id)
    before_data = snapshot_model(record)
    db.delete(record)
    log_event(
        db,
        actor=user,
        action=AuditAction.delete,
        entity_type=AuditEntity.treatment_record,
        entity_id=record_id,
        patient_id=patient_id,
        before_data=before_data,
        request_id=request_id,
        ip_address=request.client.host if request.client else None,
    )
    db.commit()


@router.post("/form-link", response_model=FormLinkOut)
def share_form_link(
    patient_id: int,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    request_id: str | None = Header(default=None),
):
    patient = _get_patient_or_404(db, patient_id)
    try:
        changed = mark_form_shared(patient)
    except FormAlreadySignedError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if changed:
        log_event(
            db,
            actor=user,
            action=AuditAction.form_shared,
            entity_type=AuditEntity.patient,
            entity_id=patient.id,
            after_data={"status": patient.status.value},
            request_id=request_id,
            ip_address=request.client.host if request.client else None,
        )
        db.commit()
        db.refresh(patient)

    token = create_form_token(
        patient_id=patient.id,
        secret=jwt_secret(),
        alg=settings.jwt_alg,
        expires_hours=settings.form_link_expire_hours,
    )
    return FormLinkOut(
        patient_id=patient.id,
        status=patient.status,
        token=token,
        url=f"{settings.public_form_url}?token={token}",
        expires_at=datetime.now(timezone.utc) + timedelta(hours=settings.form_link_expire_hours),
    )
