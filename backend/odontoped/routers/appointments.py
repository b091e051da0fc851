from datetime import date, datetime, timezone

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from odontoped.db.session import get_db
from odontoped.deps import get_current_user
from odontoped.models.appointment import Appointment
from odontoped.models.audit_log import AuditAction, AuditEntity
from odontoped.models.base import as_utc
from odontoped.models.patient import Patient
from odontoped.models.user import User
from odontoped.schemas.appointment import AppointmentCreate, AppointmentOut, AppointmentUpdate
from odontoped.services.audit import log_event, snapshot_model
from odontoped.services.schedule import (
    UPCOMING_LIMIT,
    appointments_for_day,
    local_to_utc,
    upcoming_appointments,
    validate_appointment_window,
)

router = APIRouter(prefix="/appointments", tags=["appointments"])


def _get_appointment_or_404(db: Session, appointment_id: int) -> Appointment:
    appt = db.get(Appointment, appointment_id)
    if not appt:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Appointment not found")
    return appt


def _ensure_patient(db: Session, patient_id: int | None) -> None:
    if patient_id is None:
        return
    patient = db.get(Patient, patient_id)
    if not patient or patient.deleted_at is not None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Patient not found")


@router.get("", response_model=list[AppointmentOut])
def list_appointments(
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
    patient_id: int | None = Query(default=None),
    from_dt: datetime | None = Query(default=None, alias="from"),
    to_dt: datetime | None = Query(default=None, alias="to"),
):
    stmt = select(Appointment).order_by(Appointment.data_hora_inicio.asc())
    if patient_id is not None:
        stmt = stmt.where(Appointment.patient_id == patient_id)
    if from_dt is not None:
        stmt = stmt.where(Appointment.data_hora_inicio >= local_to_utc(from_dt))
    if to_dt is not None:
        stmt = stmt.where(Appointment.data_hora_inicio < local_to_utc(to_dt))
    return list(db.scalars(stmt).unique())


@router.get("/upcoming", response_model=list[AppointmentOut])
def list_upcoming_appointments(
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
    limit: int = Query(default=UPCOMING_LIMIT, ge=1, le=50),
):
    return upcoming_appointments(db, now=datetime.now(timezone.utc), limit=limit)


@router.get("/day", response_model=list[AppointmentOut])
def list_day_appointments(
    day: date,
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
):
    return appointments_for_day(db, day)


@router.post("", response_model=AppointmentOut, status_code=status.HTTP_201_CREATED)
def create_appointment(
    payload: AppointmentCreate,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    request_id: str | None = Header(default=None),
):
    _ensure_patient(db, payload.patient_id)
    starts_at = local_to_utc(payload.data_hora_inicio)
    ends_at = local_to_utc(payload.data_hora_fim)
    ok, reason = validate_appointment_window(starts_at, ends_at)
    if not ok:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=reason)

    appt = Appointment(
        titulo=payload.titulo,
        descricao=payload.descricao,
        data_hora_inicio=starts_at,
        data_hora_fim=ends_at,
        patient_id=payload.patient_id,
        cor=payload.cor,
    )
    db.add(appt)
    db.flush()
    log_event(
        db,
        actor=user,
        action=AuditAction.create,
        entity_type=AuditEntity.appointment,
        entity_id=str(appt.id),
        patient_id=appt.patient_id,
        after_obj=appt,
        request_id=request_id,
        ip_address=request.client.host if request.client else None,
    )
    db.commit()
    db.refresh(appt)
    return appt


@router.get("/{appointment_id}", response_model=AppointmentOut)
def get_appointment(
    appointment_id: int,
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
):
    return _get_appointment_or_404(db, appointment_id)


@router.patch("/{appointment_id}", response_model=AppointmentOut)
def update_appointment(
    appointment_id: int,
    payload: AppointmentUpdate,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    request_id: str | None = Header(default=None),
):
    appt = _get_appointment_or_404(db, appointment_id)
    changes = payload.model_dump(exclude_unset=True)
    if "patient_id" in changes:
        _ensure_patient(db, changes["patient_id"])

    starts_at = as_utc(appt.data_hora_inicio)
    ends_at = as_utc(appt.data_hora_fim)
    if changes.get("data_hora_inicio") is not None:
        starts_at = local_to_utc(changes.pop("data_hora_inicio"))
    if changes.get("data_hora_fim") is not None:
        ends_at = local_to_utc(changes.pop("data_hora_fim"))
    ok, reason = validate_appointment_window(starts_at, ends_at)
    if not ok:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=reason)

    before_data = snapshot_model(appt)
    changes.pop("data_hora_inicio", None)
    changes.pop("data_hora_fim", None)
    for field, value in changes.items():
        if field == "titulo" and value is None:
            continue
        setattr(appt, field, value)
    appt.data_hora_inicio = starts_at
    appt.data_hora_fim = ends_at
    db.add(appt)
    log_event(
        db,
        actor=user,
        action=AuditAction.update,
        entity_type=AuditEntity.appointment,
        entity_id=str(appt.id),
        patient_id=appt.patient_id,
        before_data=before_data,
        after_obj=appt,
        request_id=request_id,
        ip_address=request.client.host if request.client else None,
    )
    db.commit()
    db.refresh(appt)
    return appt


@router.delete("/{appointment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_appointment(
    appointment_id: int,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    request_id: str | None = Header(default=None),
):
    appt = _get_appointment_or_404(db, appointment_id)
    before_data = snapshot_model(appt)
    db.delete(appt)
    log_event(
        db,
        actor=user,
        action=AuditAction.delete,
        entity_type=AuditEntity.appointment,
        entity_id=str(appointment_id),
        patient_id=appt.patient_id,
        before_data=before_data,
        request_id=request_id,
        ip_address=request.client.host if request.client else None,
    )
    db.commit()
