import asyncio
import threading
import uuid
from datetime import date, datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from sqlalchemy.exc import OperationalError

from odontoped.models.reminder import ReminderType
from odontoped.schemas.notification import (
    BirthdayNotification,
    ManualNotificationItem,
    ReminderNotification,
)
from odontoped.services.alerts import AlertLevel, AlertLog
from odontoped.services.birthdays import UpcomingBirthday
from odontoped.services.errors import NotificationNotFoundError
from odontoped.services.notifications import (
    LOAD_ERROR,
    MARK_SENT_ERROR,
    NotificationFeed,
    run_periodic_refresh,
)

NOW = datetime(2024, 3, 10, 15, 0, tzinfo=timezone.utc)


def _reminder(patient_id: int = 1, minutes_ago: int = 30):
    return SimpleNamespace(
        id=uuid.uuid4(),
        patient_id=patient_id,
        type=ReminderType.return_visit,
        target_date=date(2024, 3, 20),
        notify_at=NOW - timedelta(minutes=minutes_ago),
        message_template=None,
        sent=False,
        created_at=NOW - timedelta(days=3),
        updated_at=NOW - timedelta(days=3),
    )


def _manual(minutes_ago: int = 10):
    return SimpleNamespace(
        id=uuid.uuid4(),
        titulo="Ligar para fornecedor",
        mensagem="Confirmar entrega de material",
        notify_at=NOW - timedelta(minutes=minutes_ago),
        telefone="11999990000",
        sent=False,
        created_at=NOW - timedelta(days=1),
    )


def _birthday(patient_id: int = 7, days: int = 0):
    return UpcomingBirthday(
        id=patient_id,
        nome="Bruna Lima",
        data_nascimento=date(2018, 3, 10),
        dias_ate_aniversario=days,
        telefone="11988887777",
    )


class FakeGateway:
    def __init__(self, reminders=(), birthdays=(), manual=(), failures=(), rows=None):
        self.reminders = list(reminders)
        self.birthdays = list(birthdays)
        self.manual = list(manual)
        self.failures = set(failures)
        self.rows = rows
        self.calls: list[tuple] = []
        self._lock = threading.Lock()

    def _record(self, *call):
        with self._lock:
            self.calls.append(call)
        if call[0] in self.failures:
            raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    def fetch_due_reminders(self, now):
        self._record("fetch_due_reminders", now)
        return self.reminders

    def get_upcoming_birthdays(self, days_ahead, today):
        self._record("get_upcoming_birthdays", days_ahead, today)
        return self.birthdays

    def fetch_due_manual_notifications(self, now):
        self._record("fetch_due_manual_notifications", now)
        return self.manual

    def mark_reminder_sent(self, reminder_id):
        self._record("mark_reminder_sent", reminder_id)
        return self._matches("reminders", reminder_id)

    def mark_manual_notification_sent(self, notification_id):
        self._record("mark_manual_notification_sent", notification_id)
        return self._matches("manual_notifications", notification_id)

    def _matches(self, table, row_id):
        if self.rows is None:
            return True
        return row_id in self.rows.get(table, ())

    def call_names(self):
        return [call[0] for call in self.calls]


def _feed(gateway, alerts=None):
    return NotificationFeed(
        gateway,
        alerts=alerts if alerts is not None else AlertLog(),
        clock=lambda: NOW,
        lookahead_days=1,
        tz=timezone.utc,
    )


def test_load_merges_sources_in_fixed_order():
    gateway = FakeGateway(
        reminders=[_reminder(1, 60), _reminder(2, 30)],
        birthdays=[_birthday()],
        manual=[_manual()],
    )
    feed = _feed(gateway)

    asyncio.run(feed.load())

    kinds = [n.kind for n in feed.notifications]
    assert kinds == ["reminder", "reminder", "birthday", "manual"]
    assert isinstance(feed.notifications[0], ReminderNotification)
    assert isinstance(feed.notifications[2], BirthdayNotification)
    assert isinstance(feed.notifications[3], ManualNotificationItem)
    assert feed.unread_count == 4
    assert feed.loading is False
    assert feed.last_loaded_at == NOW


def test_load_normalizes_ids_and_birthday_marker():
    reminder = _reminder()
    manual = _manual()
    gateway = FakeGateway(reminders=[reminder], birthdays=[_birthday(42)], manual=[manual])
    feed = _feed(gateway)

    asyncio.run(feed.load())

    ids = [n.id for n in feed.notifications]
    assert ids == [str(reminder.id), "birthday-42", str(manual.id)]
    assert feed.notifications[1].virtual is True
    assert ("get_upcoming_birthdays", 1, date(2024, 3, 10)) in gateway.calls


def test_load_tolerates_a_failing_source():
    gateway = FakeGateway(
        reminders=[_reminder()],
        birthdays=[_birthday()],
        manual=[_manual()],
        failures={"get_upcoming_birthdays"},
    )
    alerts = AlertLog()
    feed = _feed(gateway, alerts)

    asyncio.run(feed.load())

    assert [n.kind for n in feed.notifications] == ["reminder", "manual"]
    assert feed.unread_count == 2
    assert len(alerts) == 0


def test_load_reports_unexpected_errors_and_keeps_previous_list():
    gateway = FakeGateway(reminders=[_reminder()])
    alerts = AlertLog()
    feed = _feed(gateway, alerts)
    asyncio.run(feed.load())

    gateway.reminders = [SimpleNamespace(id="broken")]
    asyncio.run(feed.load())

    assert feed.unread_count == 1
    assert feed.loading is False
    messages = [(a.level, a.message) for a in alerts.drain()]
    assert messages == [(AlertLevel.error, LOAD_ERROR)]


def test_dismissing_a_birthday_is_local_only():
    gateway = FakeGateway(
        reminders=[_reminder(1), _reminder(2)],
        birthdays=[_birthday(9)],
        manual=[_manual()],
    )
    feed = _feed(gateway)
    asyncio.run(feed.load())
    assert len(feed.notifications) == 4
    assert feed.unread_count == 4
    calls_before = list(gateway.calls)

    assert asyncio.run(feed.mark_as_sent("birthday-9")) is True

    assert len(feed.notifications) == 3
    assert feed.unread_count == 3
    assert gateway.calls == calls_before


def test_dismissed_birthday_returns_on_next_load():
    gateway = FakeGateway(birthdays=[_birthday(9)])
    feed = _feed(gateway)
    asyncio.run(feed.load())
    asyncio.run(feed.mark_as_sent("birthday-9"))
    assert feed.notifications == []

    asyncio.run(feed.load())

    assert [n.id for n in feed.notifications] == ["birthday-9"]


def test_dismissing_unknown_birthday_keeps_count():
    gateway = FakeGateway(birthdays=[_birthday(9)])
    feed = _feed(gateway)
    asyncio.run(feed.load())

    asyncio.run(feed.mark_as_sent("birthday-404"))

    assert feed.unread_count == 1


def test_dismissing_a_reminder_marks_reminders_table():
    first, second = _reminder(1), _reminder(2)
    gateway = FakeGateway(reminders=[first, second], manual=[_manual()])
    feed = _feed(gateway)
    asyncio.run(feed.load())

    assert asyncio.run(feed.mark_as_sent(str(first.id))) is True

    assert ("mark_reminder_sent", first.id) in gateway.calls
    assert "mark_manual_notification_sent" not in gateway.call_names()
    assert [n.id for n in feed.notifications if n.kind == "reminder"] == [str(second.id)]
    assert feed.unread_count == 2


def test_dismissing_a_manual_notification_marks_manual_table():
    manual = _manual()
    gateway = FakeGateway(reminders=[_reminder()], manual=[manual])
    feed = _feed(gateway)
    asyncio.run(feed.load())

    assert asyncio.run(feed.mark_as_sent(str(manual.id))) is True

    assert ("mark_manual_notification_sent", manual.id) in gateway.calls
    assert "mark_reminder_sent" not in gateway.call_names()
    assert [n.kind for n in feed.notifications] == ["reminder"]


def test_failed_dismissal_leaves_state_untouched():
    reminder = _reminder()
    gateway = FakeGateway(reminders=[reminder], failures={"mark_reminder_sent"})
    alerts = AlertLog()
    feed = _feed(gateway, alerts)
    asyncio.run(feed.load())

    assert asyncio.run(feed.mark_as_sent(str(reminder.id))) is False

    assert [n.id for n in feed.notifications] == [str(reminder.id)]
    assert feed.unread_count == 1
    assert [a.message for a in alerts.drain()] == [MARK_SENT_ERROR]


def test_dismissing_an_unloaded_manual_notification_finds_its_table():
    late = _manual(minutes_ago=1)
    gateway = FakeGateway(
        reminders=[_reminder()],
        rows={"manual_notifications": {late.id}},
    )
    alerts = AlertLog()
    feed = _feed(gateway, alerts)
    asyncio.run(feed.load())

    assert asyncio.run(feed.mark_as_sent(str(late.id))) is True

    assert gateway.call_names()[-2:] == ["mark_reminder_sent", "mark_manual_notification_sent"]
    assert [a.message for a in alerts.drain()] == ["Mensagem enviada"]
    assert feed.unread_count == 1


def test_dismissing_an_unknown_id_raises_not_found():
    gateway = FakeGateway(reminders=[_reminder()], rows={})
    alerts = AlertLog()
    feed = _feed(gateway, alerts)
    asyncio.run(feed.load())

    with pytest.raises(NotificationNotFoundError):
        asyncio.run(feed.mark_as_sent(str(uuid.uuid4())))

    assert feed.unread_count == 1
    assert len(alerts) == 0


def test_dismissing_a_malformed_id_never_reaches_the_gateway():
    gateway = FakeGateway(reminders=[_reminder()])
    feed = _feed(gateway)
    asyncio.run(feed.load())
    calls_before = list(gateway.calls)

    with pytest.raises(NotificationNotFoundError):
        asyncio.run(feed.mark_as_sent("not-a-uuid"))

    assert gateway.calls == calls_before
    assert feed.unread_count == 1


def test_concurrent_loads_share_one_fetch():
    gateway = FakeGateway(reminders=[_reminder()])
    feed = _feed(gateway)

    async def scenario():
        await asyncio.gather(feed.load(), feed.load(), feed.load())

    asyncio.run(scenario())

    assert gateway.call_names().count("fetch_due_reminders") == 1
    assert feed.unread_count == 1


def test_periodic_refresh_stops_on_cancel():
    gateway = FakeGateway(reminders=[_reminder()])
    feed = _feed(gateway)

    async def scenario():
        task = asyncio.create_task(run_periodic_refresh(feed, interval_seconds=0.01))
        await asyncio.sleep(0.05)
        task.cancel()
        await task
        return task

    task = asyncio.run(scenario())

    assert task.done()
    assert gateway.call_names().count("fetch_due_reminders") >= 2
    assert feed.unread_count == 1
