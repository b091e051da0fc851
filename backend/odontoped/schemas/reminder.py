from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from odontoped.models.reminder import ReminderType


class ReturnReminderCreate(BaseModel):
    target_date: date
    notify_at: datetime
    message_template: Optional[str] = None


class ReminderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    patient_id: int
    type: ReminderType
    target_date: date
    notify_at: datetime
    message_template: Optional[str] = None
    sent: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PatientRemindersOut(BaseModel):
    upcoming: list[ReminderOut]
    past: list[ReminderOut]


class PatientContactOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    nome: str
    telefone: Optional[str] = None


class ReminderRowOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    reminder: ReminderOut
    patient: Optional[PatientContactOut] = None


class UpcomingBirthdayOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    nome: str
    data_nascimento: date
    dias_ate_aniversario: int
    telefone: Optional[str] = None


class UpcomingOverviewOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    reminders: list[ReminderRowOut]
    birthdays: list[UpcomingBirthdayOut]


def reminder_row_out(row) -> ReminderRowOut:
    return ReminderRowOut(
        reminder=ReminderOut.model_validate(row.reminder),
        patient=PatientContactOut.model_validate(row.patient) if row.patient else None,
    )
