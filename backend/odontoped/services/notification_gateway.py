"""Data access for reminders, manual notifications and birthday lookups.

Each call opens and closes its own session so that several calls may run on
worker threads at the same time.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Callable, Iterable

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from odontoped.models.manual_notification import ManualNotification
from odontoped.models.patient import Patient
from odontoped.models.reminder import Reminder, ReminderType
from odontoped.services.birthdays import UpcomingBirthday, upcoming_birthdays

logger = logging.getLogger("odontoped.gateway")


@dataclass(frozen=True)
class PatientContact:
    nome: str
    telefone: str | None


def parse_id(value: str | uuid.UUID) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    return uuid.UUID(str(value))


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        raise ValueError("timestamp must be timezone-aware")
    return value.astimezone(timezone.utc)


class NotificationGateway:
    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def fetch_due_reminders(self, now: datetime) -> list[Reminder]:
        stmt = (
            select(Reminder)
            .where(Reminder.sent.is_(False), Reminder.notify_at <= _utc(now))
            .order_by(Reminder.notify_at.asc())
        )
        with self._session_factory() as db:
            return list(db.scalars(stmt))

    def fetch_due_manual_notifications(self, now: datetime) -> list[ManualNotification]:
        stmt = (
            select(ManualNotification)
            .where(ManualNotification.sent.is_(False), ManualNotification.notify_at <= _utc(now))
            .order_by(ManualNotification.notify_at.asc())
        )
        with self._session_factory() as db:
            return list(db.scalars(stmt))

    def get_upcoming_birthdays(self, days_ahead: int, today: date) -> list[UpcomingBirthday]:
        stmt = select(
            Patient.id, Patient.nome, Patient.data_nascimento, Patient.telefone
        ).where(Patient.deleted_at.is_(None), Patient.data_nascimento.is_not(None))
        with self._session_factory() as db:
            rows = [tuple(row) for row in db.execute(stmt)]
        return upcoming_birthdays(rows, days_ahead=days_ahead, today=today)

    def mark_reminder_sent(self, reminder_id: str | uuid.UUID) -> bool:
        return self._mark_sent(Reminder, reminder_id)

    def mark_manual_notification_sent(self, notification_id: str | uuid.UUID) -> bool:
        return self._mark_sent(ManualNotification, notification_id)

    def _mark_sent(self, model, row_id: str | uuid.UUID) -> bool:
        stmt = update(model).where(model.id == parse_id(row_id)).values(sent=True)
        with self._session_factory() as db:
            result = db.execute(stmt)
            db.commit()
        return bool(result.rowcount)

    def insert_reminder(
        self,
        *,
        patient_id: int,
        target_date: date,
        notify_at: datetime,
        message_template: str | None,
        reminder_type: ReminderType = ReminderType.return_visit,
    ) -> Reminder:
        reminder = Reminder(
            patient_id=patient_id,
            type=reminder_type,
            target_date=target_date,
            notify_at=_utc(notify_at),
            message_template=message_template,
            sent=False,
        )
        with self._session_factory() as db:
            db.add(reminder)
            db.commit()
            db.refresh(reminder)
            return reminder

    def list_patient_reminders(self, patient_id: int) -> list[Reminder]:
        stmt = (
            select(Reminder)
            .where(Reminder.patient_id == patient_id)
            .order_by(Reminder.target_date.desc())
        )
        with self._session_factory() as db:
            return list(db.scalars(stmt))

    def list_reminders(self) -> list[Reminder]:
        stmt = select(Reminder).order_by(Reminder.target_date.asc())
        with self._session_factory() as db:
            return list(db.scalars(stmt))

    def upcoming_return_reminders(self, today: date, *, limit: int) -> list[Reminder]:
        stmt = (
            select(Reminder)
            .where(
                Reminder.sent.is_(False),
                Reminder.type == ReminderType.return_visit,
                Reminder.target_date >= today,
            )
            .order_by(Reminder.target_date.asc())
            .limit(limit)
        )
        with self._session_factory() as db:
            return list(db.scalars(stmt))

    def delete_reminder(self, reminder_id: str | uuid.UUID) -> None:
        self._delete(Reminder, reminder_id)

    def delete_manual_notification(self, notification_id: str | uuid.UUID) -> None:
        self._delete(ManualNotification, notification_id)

    def _delete(self, model, row_id: str | uuid.UUID) -> None:
        with self._session_factory() as db:
            result = db.execute(delete(model).where(model.id == parse_id(row_id)))
            db.commit()
        if not result.rowcount:
            logger.info("Delete matched no %s row for id %s", model.__tablename__, row_id)

    def insert_manual_notification(
        self,
        *,
        titulo: str,
        mensagem: str,
        notify_at: datetime,
        telefone: str | None,
    ) -> ManualNotification:
        notification = ManualNotification(
            titulo=titulo,
            mensagem=mensagem,
            notify_at=_utc(notify_at),
            telefone=telefone,
            sent=False,
        )
        with self._session_factory() as db:
            db.add(notification)
            db.commit()
            db.refresh(notification)
            return notification

    def list_manual_notifications(self) -> list[ManualNotification]:
        stmt = select(ManualNotification).order_by(ManualNotification.notify_at.desc())
        with self._session_factory() as db:
            return list(db.scalars(stmt))

    def patient_contacts(self, patient_ids: Iterable[int]) -> dict[int, PatientContact]:
        ids = sorted(set(patient_ids))
        if not ids:
            return {}
        stmt = select(Patient.id, Patient.nome, Patient.telefone).where(Patient.id.in_(ids))
        with self._session_factory() as db:
            return {
                row.id: PatientContact(nome=row.nome, telefone=row.telefone)
                for row in db.execute(stmt)
            }
