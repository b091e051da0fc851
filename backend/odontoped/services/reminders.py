from __future__ import annotations

import enum
import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime, tzinfo
from typing import Callable, Iterable

from sqlalchemy.exc import SQLAlchemyError

from odontoped.core.settings import settings
from odontoped.models.manual_notification import ManualNotification
from odontoped.models.reminder import Reminder
from odontoped.schemas.manual_notification import ManualNotificationCreate
from odontoped.services.alerts import AlertLog
from odontoped.services.birthdays import UpcomingBirthday
from odontoped.services.errors import NotificationNotFoundError, NotificationValidationError
from odontoped.services.notification_gateway import NotificationGateway, PatientContact, parse_id
from odontoped.services.notifications import utcnow

logger = logging.getLogger("odontoped.reminders")

CREATE_RETURN_ERROR = "Erro ao criar lembrete de retorno"
PATIENT_REMINDERS_ERROR = "Erro ao carregar lembretes do paciente"
LIST_REMINDERS_ERROR = "Erro ao carregar lembretes"
DELETE_REMINDER_ERROR = "Erro ao excluir lembrete"
DELETE_MANUAL_ERROR = "Erro ao excluir notificação"
CREATE_MANUAL_ERROR = "Erro ao criar notificação. Tente novamente."
LIST_MANUAL_ERROR = "Erro ao carregar notificações manuais"
OVERVIEW_ERROR = "Erro ao carregar dados de lembretes"
RETURN_CREATED = "Retorno agendado com sucesso!"
REMINDER_DELETED = "Lembrete excluído com sucesso"
MANUAL_CREATED = "Notificação criada com sucesso!"
MANUAL_DELETED = "Notificação removida"
NOTIFY_AT_IN_PAST = "A data de notificação deve ser no futuro"
DISPLAY_AT_IN_PAST = "A data de exibição deve ser no futuro"

DASHBOARD_REMINDER_LIMIT = 3


class ReminderTab(str, enum.Enum):
    all = "all"
    upcoming = "upcoming"
    past = "past"


@dataclass
class ReminderPartition:
    upcoming: list[Reminder]
    past: list[Reminder]


@dataclass(frozen=True)
class ReminderRow:
    reminder: Reminder
    patient: PatientContact | None


@dataclass
class UpcomingOverview:
    reminders: list[ReminderRow]
    birthdays: list[UpcomingBirthday]


def is_upcoming(reminder: Reminder, today: date) -> bool:
    return reminder.target_date >= today and not reminder.sent


def partition_reminders(reminders: Iterable[Reminder], today: date) -> ReminderPartition:
    upcoming: list[Reminder] = []
    past: list[Reminder] = []
    for reminder in reminders:
        (upcoming if is_upcoming(reminder, today) else past).append(reminder)
    return ReminderPartition(upcoming=upcoming, past=past)


def _row_id(value: str) -> uuid.UUID:
    try:
        return parse_id(value)
    except ValueError:
        raise NotificationNotFoundError(value) from None


def matches_search(contact: PatientContact | None, search: str | None) -> bool:
    if not search:
        return True
    if contact is None:
        return False
    if search.lower() in contact.nome.lower():
        return True
    return bool(contact.telefone) and search in contact.telefone


class ReminderService:
    """Create, list and delete return reminders and manual notifications.

    Persistence failures are logged, reported through ``alerts`` and turned
    into a failure value (``None``, ``False`` or ``[]``). Invalid input raises
    ``NotificationValidationError`` before anything is written, and ids that
    are not UUIDs raise ``NotificationNotFoundError``.
    """

    def __init__(
        self,
        gateway: NotificationGateway,
        *,
        alerts: AlertLog | None = None,
        clock: Callable[[], datetime] = utcnow,
        tz: tzinfo | None = None,
    ) -> None:
        self._gateway = gateway
        self.alerts = alerts if alerts is not None else AlertLog()
        self._clock = clock
        self._tz = tz or settings.tzinfo

    def today(self) -> date:
        return self._clock().astimezone(self._tz).date()

    def _aware(self, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=self._tz)
        return value

    def _calendar_date(self, value: date | datetime) -> date:
        if isinstance(value, datetime):
            return self._aware(value).astimezone(self._tz).date()
        return value

    def create_return_reminder(
        self,
        patient_id: int,
        target_date: date | datetime,
        notify_at: datetime,
        message_template: str | None = None,
    ) -> Reminder | None:
        notify_at = self._aware(notify_at)
        if notify_at <= self._clock():
            raise NotificationValidationError(NOTIFY_AT_IN_PAST)
        try:
            reminder = self._gateway.insert_reminder(
                patient_id=patient_id,
                target_date=self._calendar_date(target_date),
                notify_at=notify_at,
                message_template=message_template or None,
            )
        except SQLAlchemyError:
            logger.exception("Failed to create return reminder for patient %s", patient_id)
            self.alerts.error(CREATE_RETURN_ERROR)
            return None
        self.alerts.success(RETURN_CREATED)
        return reminder

    def get_patient_reminders(self, patient_id: int) -> list[Reminder]:
        try:
            return self._gateway.list_patient_reminders(patient_id)
        except SQLAlchemyError:
            logger.exception("Failed to load reminders for patient %s", patient_id)
            self.alerts.error(PATIENT_REMINDERS_ERROR)
            return []

    def delete_reminder(self, reminder_id: str) -> bool:
        row_id = _row_id(reminder_id)
        try:
            self._gateway.delete_reminder(row_id)
        except SQLAlchemyError:
            logger.exception("Failed to delete reminder %s", reminder_id)
            self.alerts.error(DELETE_REMINDER_ERROR)
            return False
        self.alerts.success(REMINDER_DELETED)
        return True

    def delete_manual_notification(self, notification_id: str) -> bool:
        row_id = _row_id(notification_id)
        try:
            self._gateway.delete_manual_notification(row_id)
        except SQLAlchemyError:
            logger.exception("Failed to delete manual notification %s", notification_id)
            self.alerts.error(DELETE_MANUAL_ERROR)
            return False
        self.alerts.success(MANUAL_DELETED)
        return True

    def create_manual_notification(
        self, payload: ManualNotificationCreate
    ) -> ManualNotification | None:
        notify_at = datetime.combine(payload.data_exibicao, payload.display_time, tzinfo=self._tz)
        if notify_at <= self._clock():
            raise NotificationValidationError(DISPLAY_AT_IN_PAST)
        try:
            notification = self._gateway.insert_manual_notification(
                titulo=payload.titulo,
                mensagem=payload.mensagem,
                notify_at=notify_at,
                telefone=payload.telefone,
            )
        except SQLAlchemyError:
            logger.exception("Failed to create manual notification")
            self.alerts.error(CREATE_MANUAL_ERROR)
            return None
        logger.info("Manual notification %s scheduled for %s", notification.id, notify_at)
        self.alerts.success(MANUAL_CREATED)
        return notification

    def list_reminders(
        self,
        *,
        tab: ReminderTab = ReminderTab.all,
        search: str | None = None,
    ) -> list[ReminderRow]:
        try:
            reminders = self._gateway.list_reminders()
            contacts = self._gateway.patient_contacts(r.patient_id for r in reminders)
        except SQLAlchemyError:
            logger.exception("Failed to load reminders")
            self.alerts.error(LIST_REMINDERS_ERROR)
            return []

        search = search.strip() if search else None
        today = self.today()
        rows: list[ReminderRow] = []
        for reminder in reminders:
            contact = contacts.get(reminder.patient_id)
            if not matches_search(contact, search):
                continue
            if tab == ReminderTab.upcoming and not is_upcoming(reminder, today):
                continue
            if tab == ReminderTab.past and is_upcoming(reminder, today):
                continue
            rows.append(ReminderRow(reminder=reminder, patient=contact))
        return rows

    def upcoming_overview(self) -> UpcomingOverview:
        today = self.today()
        try:
            reminders = self._gateway.upcoming_return_reminders(
                today, limit=DASHBOARD_REMINDER_LIMIT
            )
            birthdays = self._gateway.get_upcoming_birthdays(
                settings.dashboard_birthday_lookahead_days, today
            )
        except SQLAlchemyError:
            logger.exception("Failed to load dashboard reminders")
            self.alerts.error(OVERVIEW_ERROR)
            return UpcomingOverview(reminders=[], birthdays=[])

        try:
            contacts = self._gateway.patient_contacts(r.patient_id for r in reminders)
        except SQLAlchemyError:
            logger.exception("Failed to load patient names for dashboard reminders")
            contacts = {}
        return UpcomingOverview(
            reminders=[ReminderRow(r, contacts.get(r.patient_id)) for r in reminders],
            birthdays=birthdays,
        )

    def list_manual_notifications(self) -> list[ManualNotification]:
        try:
            return self._gateway.list_manual_notifications()
        except SQLAlchemyError:
            logger.exception("Failed to load manual notifications")
            self.alerts.error(LIST_MANUAL_ERROR)
            return []
