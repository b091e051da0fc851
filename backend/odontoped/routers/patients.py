from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, status
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from odontoped.db.session import get_db
from odontoped.deps import get_current_user
from odontoped.models.audit_log import AuditAction, AuditEntity
from odontoped.models.patient import Patient
from odontoped.models.user import User
from odontoped.schemas.patient import PatientCreate, PatientOut, PatientUpdate
from odontoped.services.audit import log_event, snapshot_model

router = APIRouter(prefix="/patients", tags=["patients"])


def _get_patient_or_404(db: Session, patient_id: int) -> Patient:
    patient = db.get(Patient, patient_id)
    if not patient or patient.deleted_at is not None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Patient not found")
    return patient


@router.get("", response_model=list[PatientOut])
def list_patients(
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
    q: str | None = Query(default=None),
    include_deleted: bool = Query(default=False),
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
):
    stmt = select(Patient).order_by(Patient.nome.asc())
    if q:
        q_like = f"%{q.strip()}%"
        stmt = stmt.where(or_(Patient.nome.ilike(q_like), Patient.telefone.ilike(q_like)))
    if not include_deleted:
        stmt = stmt.where(Patient.deleted_at.is_(None))
    stmt = stmt.limit(limit).offset(offset)
    return list(db.scalars(stmt))


@router.post("", response_model=PatientOut, status_code=status.HTTP_201_CREATED)
def create_patient(
    payload: PatientCreate,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    request_id: str | None = Header(default=None),
):
    patient = Patient(**payload.model_dump())
    db.add(patient)
    db.flush()
    log_event(
        db,
        actor=user,
        action=AuditAction.create,
        entity_type=AuditEntity.patient,
        entity_id=str(patient.id),
        after_obj=patient,
        request_id=request_id,
        ip_address=request.client.host if request.client else None,
    )
    db.commit()
    db.refresh(patient)
    return patient


@router.get("/{patient_id}", response_model=PatientOut)
def get_patient(
    patient_id: int,
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
):
    return _get_patient_or_404(db, patient_id)


@router.patch("/{patient_id}", response_model=PatientOut)
def update_patient(
    patient_id: int,
    payload: PatientUpdate,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    request_id: str | None = Header(default=None),
):
    patient = _get_patient_or_404(db, patient_id)
    before_data = snapshot_model(patient)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(patient, field, value)
    db.add(patient)
    db.flush()
    log_event(
        db,
        actor=user,
        action=AuditAction.update,
        entity_type=AuditEntity.patient,
        entity_id=str(patient.id),
        before_data=before_data,
        after_obj=patient,
        request_id=request_id,
        ip_address=request.client.host if request.client else None,
    )
    db.commit()
    db.refresh(patient)
    return patient


@router.delete("/{patient_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_patient(
    patient_id: int,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    request_id: str | None = Header(default=None),
):
    patient = _get_patient_or_404(db, patient_id)
    before_data = snapshot_model(patient)
    patient.deleted_at = datetime.now(timezone.utc)
    db.add(patient)
    log_event(
        db,
        actor=user,
        action=AuditAction.delete,
        entity_type=AuditEntity.patient,
        entity_id=str(patient.id),
        before_data=before_data,
        after_data={"deleted_at": patient.deleted_at.isoformat()},
        request_id=request_id,
        ip_address=request.client.host if request.client else None,
    )
    db.commit()
