from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from odontoped.db.session import get_db
from odontoped.deps import get_current_user, get_reminder_service, raise_for_alerts
from odontoped.models.patient import Patient
from odontoped.models.user import User
from odontoped.schemas.reminder import (
    PatientRemindersOut,
    ReminderOut,
    ReminderRowOut,
    ReturnReminderCreate,
    reminder_row_out,
)
from odontoped.services.alerts import error_messages
from odontoped.services.errors import NotificationNotFoundError, NotificationValidationError
from odontoped.services.reminders import (
    CREATE_RETURN_ERROR,
    DELETE_REMINDER_ERROR,
    LIST_REMINDERS_ERROR,
    PATIENT_REMINDERS_ERROR,
    ReminderService,
    ReminderTab,
    partition_reminders,
)

patient_router = APIRouter(prefix="/patients/{patient_id}/reminders", tags=["reminders"])
router = APIRouter(prefix="/reminders", tags=["reminders"])


def _ensure_patient(db: Session, patient_id: int) -> Patient:
    patient = db.get(Patient, patient_id)
    if not patient or patient.deleted_at is not None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Patient not found")
    return patient


@patient_router.get("", response_model=PatientRemindersOut)
def list_patient_reminders(
    patient_id: int,
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
    service: ReminderService = Depends(get_reminder_service),
):
    _ensure_patient(db, patient_id)
    with service.alerts.collect() as collected:
        reminders = service.get_patient_reminders(patient_id)
    if error_messages(collected):
        raise_for_alerts(collected, PATIENT_REMINDERS_ERROR)
    partition = partition_reminders(reminders, service.today())
    return PatientRemindersOut(
        upcoming=[ReminderOut.model_validate(r) for r in partition.upcoming],
        past=[ReminderOut.model_validate(r) for r in partition.past],
    )


@patient_router.post("", response_model=ReminderOut, status_code=status.HTTP_201_CREATED)
def create_return_reminder(
    patient_id: int,
    payload: ReturnReminderCreate,
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
    service: ReminderService = Depends(get_reminder_service),
):
    _ensure_patient(db, patient_id)
    with service.alerts.collect() as collected:
        try:
            reminder = service.create_return_reminder(
                patient_id,
                payload.target_date,
                payload.notify_at,
                payload.message_template,
            )
        except NotificationValidationError as exc:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=exc.message
            )
    if reminder is None:
        raise_for_alerts(collected, CREATE_RETURN_ERROR)
    return reminder


@router.get("", response_model=list[ReminderRowOut])
def list_reminders(
    _user: User = Depends(get_current_user),
    service: ReminderService = Depends(get_reminder_service),
    tab: ReminderTab = Query(default=ReminderTab.all),
    search: str | None = Query(default=None),
):
    with service.alerts.collect() as collected:
        rows = service.list_reminders(tab=tab, search=search)
    if error_messages(collected):
        raise_for_alerts(collected, LIST_REMINDERS_ERROR)
    return [reminder_row_out(row) for row in rows]


@router.delete("/{reminder_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_reminder(
    reminder_id: str,
    _user: User = Depends(get_current_user),
    service: ReminderService = Depends(get_reminder_service),
):
    with service.alerts.collect() as collected:
        try:
            deleted = service.delete_reminder(reminder_id)
        except NotificationNotFoundError:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Reminder not found")
    if not deleted:
        raise_for_alerts(collected, DELETE_REMINDER_ERROR)
