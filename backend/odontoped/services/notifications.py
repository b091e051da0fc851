"""In-memory notification feed.

The feed merges three sources into one list: due return reminders,
birthdays inside the lookahead window and due manual notifications, in that
order. Every loaded item counts as unread until it is dismissed.

Birthday items are never persisted. Dismissing one only drops it from the
current list, so it comes back on the next refresh while the birthday is
still inside the window.

Loads are single-flight: a load requested while another is running waits
for the running one. A dismissal racing a refresh is resolved by whichever
finishes last.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, timezone, tzinfo
from typing import Callable, Sequence, assert_never

from sqlalchemy.exc import SQLAlchemyError

from odontoped.core.settings import settings
from odontoped.models.base import as_utc
from odontoped.models.manual_notification import ManualNotification
from odontoped.models.reminder import Reminder
from odontoped.schemas.notification import (
    BIRTHDAY_ID_PREFIX,
    BirthdayNotification,
    ManualNotificationItem,
    Notification,
    ReminderNotification,
)
from odontoped.services.alerts import AlertLog
from odontoped.services.birthdays import UpcomingBirthday
from odontoped.services.errors import NotificationNotFoundError
from odontoped.services.messages import get_birthday_message, get_return_message, whatsapp_url
from odontoped.services.notification_gateway import (
    NotificationGateway,
    PatientContact,
    parse_id,
)

logger = logging.getLogger("odontoped.notifications")

LOAD_ERROR = "Erro ao carregar notificações"
MARK_SENT_ERROR = "Erro ao marcar notificação como enviada"
BIRTHDAY_SENT = "Mensagem de aniversário enviada"
RETURN_SENT = "Mensagem de retorno enviada"
MANUAL_SENT = "Mensagem enviada"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def reminder_notification(row: Reminder) -> ReminderNotification:
    return ReminderNotification(
        id=str(row.id),
        patient_id=row.patient_id,
        type=row.type,
        target_date=row.target_date,
        notify_at=as_utc(row.notify_at),
        message_template=row.message_template,
        sent=row.sent,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def birthday_notification(row: UpcomingBirthday) -> BirthdayNotification:
    return BirthdayNotification(
        id=f"{BIRTHDAY_ID_PREFIX}{row.id}",
        nome=row.nome,
        data_nascimento=row.data_nascimento,
        dias_ate_aniversario=row.dias_ate_aniversario,
        telefone=row.telefone,
    )


def manual_notification_item(row: ManualNotification) -> ManualNotificationItem:
    return ManualNotificationItem(
        id=str(row.id),
        titulo=row.titulo,
        mensagem=row.mensagem,
        notify_at=as_utc(row.notify_at),
        telefone=row.telefone,
        sent=row.sent,
        created_at=row.created_at,
    )


def compose_message(
    notification: Notification, contact: PatientContact | None = None
) -> tuple[str | None, str]:
    """Phone number and message text to send for a notification.

    Return reminders need the patient's contact; without one the phone is
    unknown and the message falls back to an empty name.
    """
    if isinstance(notification, ReminderNotification):
        name = contact.nome if contact else ""
        phone = contact.telefone if contact else None
        return phone, get_return_message(notification, name)
    if isinstance(notification, BirthdayNotification):
        return notification.telefone, get_birthday_message(notification)
    if isinstance(notification, ManualNotificationItem):
        return notification.telefone, notification.mensagem
    assert_never(notification)


def send_link(phone: str | None, message: str) -> str | None:
    if not phone:
        return None
    return whatsapp_url(phone, message)


class NotificationFeed:
    def __init__(
        self,
        gateway: NotificationGateway,
        *,
        alerts: AlertLog | None = None,
        clock: Callable[[], datetime] = utcnow,
        lookahead_days: int | None = None,
        tz: tzinfo | None = None,
    ) -> None:
        self._gateway = gateway
        self.alerts = alerts if alerts is not None else AlertLog()
        self._clock = clock
        self._lookahead_days = (
            lookahead_days if lookahead_days is not None else settings.birthday_lookahead_days
        )
        self._tz = tz or settings.tzinfo
        self.notifications: list[Notification] = []
        self.unread_count = 0
        self.loading = False
        self.last_loaded_at: datetime | None = None
        self._inflight: asyncio.Future | None = None

    def today(self, now: datetime | None = None) -> date:
        return (now or self._clock()).astimezone(self._tz).date()

    def find(self, notification_id: str) -> Notification | None:
        for notification in self.notifications:
            if notification.id == notification_id:
                return notification
        return None

    async def load(self) -> None:
        if self._inflight is None or self._inflight.done():
            self._inflight = asyncio.ensure_future(self._load())
        await asyncio.shield(self._inflight)

    async def _load(self) -> None:
        self.loading = True
        try:
            now = self._clock()
            reminders, birthdays, manual = await asyncio.gather(
                asyncio.to_thread(self._gateway.fetch_due_reminders, now),
                asyncio.to_thread(
                    self._gateway.get_upcoming_birthdays, self._lookahead_days, self.today(now)
                ),
                asyncio.to_thread(self._gateway.fetch_due_manual_notifications, now),
                return_exceptions=True,
            )
            notifications: list[Notification] = []
            notifications.extend(
                reminder_notification(row) for row in _settled("reminders", reminders)
            )
            notifications.extend(
                birthday_notification(row) for row in _settled("birthdays", birthdays)
            )
            notifications.extend(
                manual_notification_item(row) for row in _settled("manual_notifications", manual)
            )
            self.notifications = notifications
            self.unread_count = len(notifications)
            self.last_loaded_at = now
            logger.info("Loaded %s notifications", len(notifications))
        except Exception:
            logger.exception("Failed to load notifications")
            self.alerts.error(LOAD_ERROR)
        finally:
            self.loading = False

    async def mark_as_sent(self, notification_id: str) -> bool:
        if notification_id.startswith(BIRTHDAY_ID_PREFIX):
            self._discard(notification_id)
            self.alerts.success(BIRTHDAY_SENT)
            return True

        try:
            row_id = parse_id(notification_id)
        except ValueError:
            raise NotificationNotFoundError(notification_id) from None

        current = self.find(notification_id)
        if isinstance(current, ManualNotificationItem):
            candidates = [(self._gateway.mark_manual_notification_sent, MANUAL_SENT)]
        elif isinstance(current, ReminderNotification):
            candidates = [(self._gateway.mark_reminder_sent, RETURN_SENT)]
        else:
            # Not loaded yet: the row may live in either table.
            candidates = [
                (self._gateway.mark_reminder_sent, RETURN_SENT),
                (self._gateway.mark_manual_notification_sent, MANUAL_SENT),
            ]

        try:
            for mark, sent_message in candidates:
                if await asyncio.to_thread(mark, row_id):
                    break
            else:
                sent_message = None
        except SQLAlchemyError:
            logger.exception("Failed to mark notification %s as sent", notification_id)
            self.alerts.error(MARK_SENT_ERROR)
            return False

        self._discard(notification_id)
        if sent_message is None:
            raise NotificationNotFoundError(notification_id)
        self.alerts.success(sent_message)
        return True

    def _discard(self, notification_id: str) -> None:
        remaining = [n for n in self.notifications if n.id != notification_id]
        if len(remaining) != len(self.notifications):
            self.notifications = remaining
            self.unread_count = max(0, self.unread_count - 1)


def _settled(source: str, result: Sequence | BaseException) -> Sequence:
    if isinstance(result, Exception):
        logger.error("Failed to load %s", source, exc_info=result)
        return []
    if isinstance(result, BaseException):
        raise result
    return result


async def run_periodic_refresh(feed: NotificationFeed, *, interval_seconds: float) -> None:
    logger.info("Starting notification refresh task (every %ss)", interval_seconds)

    while True:
        try:
            await feed.load()
            await asyncio.sleep(interval_seconds)
        except asyncio.CancelledError:
            logger.info("Notification refresh task cancelled")
            break
