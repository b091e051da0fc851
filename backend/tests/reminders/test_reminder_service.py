import uuid
from datetime import date, datetime, timedelta, timezone
from types import SimpleNamespace
from zoneinfo import ZoneInfo

import pytest
from pydantic import ValidationError
from sqlalchemy.exc import OperationalError

from odontoped.schemas.manual_notification import ManualNotificationCreate
from odontoped.services.alerts import AlertLevel, AlertLog
from odontoped.services.errors import NotificationNotFoundError, NotificationValidationError
from odontoped.services.notification_gateway import PatientContact
from odontoped.services.reminders import (
    CREATE_MANUAL_ERROR,
    CREATE_RETURN_ERROR,
    DELETE_REMINDER_ERROR,
    DISPLAY_AT_IN_PAST,
    NOTIFY_AT_IN_PAST,
    ReminderService,
    ReminderTab,
    partition_reminders,
)

SAO_PAULO = ZoneInfo("America/Sao_Paulo")
NOW = datetime(2024, 3, 10, 15, 0, tzinfo=timezone.utc)


class RecordingGateway:
    def __init__(self, reminders=(), contacts=None, fail=False):
        self.reminders = list(reminders)
        self.contacts = contacts or {}
        self.fail = fail
        self.calls: list[tuple[str, dict]] = []

    def _maybe_fail(self):
        if self.fail:
            raise OperationalError("INSERT", {}, Exception("down"))

    def insert_reminder(self, **kwargs):
        self.calls.append(("insert_reminder", kwargs))
        self._maybe_fail()
        return SimpleNamespace(id="new", **kwargs)

    def insert_manual_notification(self, **kwargs):
        self.calls.append(("insert_manual_notification", kwargs))
        self._maybe_fail()
        return SimpleNamespace(id="manual", **kwargs)

    def delete_reminder(self, reminder_id):
        self.calls.append(("delete_reminder", {"id": reminder_id}))
        self._maybe_fail()

    def list_reminders(self):
        self._maybe_fail()
        return self.reminders

    def patient_contacts(self, patient_ids):
        ids = set(patient_ids)
        return {pid: c for pid, c in self.contacts.items() if pid in ids}


def _service(gateway, alerts=None):
    alerts = alerts if alerts is not None else AlertLog()
    return ReminderService(gateway, alerts=alerts, clock=lambda: NOW, tz=SAO_PAULO)


def _row(patient_id, target, sent=False):
    return SimpleNamespace(patient_id=patient_id, target_date=target, sent=sent)


def test_create_return_reminder_rejects_past_notify_at_before_insert():
    gateway = RecordingGateway()
    service = _service(gateway)

    with pytest.raises(NotificationValidationError) as excinfo:
        service.create_return_reminder(1, date(2024, 3, 20), NOW - timedelta(minutes=1))

    assert excinfo.value.message == NOTIFY_AT_IN_PAST
    assert gateway.calls == []


def test_create_return_reminder_rejects_now():
    gateway = RecordingGateway()
    with pytest.raises(NotificationValidationError):
        _service(gateway).create_return_reminder(1, date(2024, 3, 20), NOW)
    assert gateway.calls == []


def test_create_return_reminder_truncates_target_to_local_date():
    gateway = RecordingGateway()
    alerts = AlertLog()
    service = _service(gateway, alerts)

    reminder = service.create_return_reminder(
        5,
        datetime(2024, 3, 21, 1, 0, tzinfo=timezone.utc),
        datetime(2024, 3, 19, 9, 0),
        "",
    )

    assert reminder is not None
    _, kwargs = gateway.calls[0]
    assert kwargs["target_date"] == date(2024, 3, 20)
    assert kwargs["notify_at"] == datetime(2024, 3, 19, 9, 0, tzinfo=SAO_PAULO)
    assert kwargs["message_template"] is None
    assert [a.level for a in alerts.drain()] == [AlertLevel.success]


def test_create_return_reminder_reports_persistence_failure():
    alerts = AlertLog()
    service = _service(RecordingGateway(fail=True), alerts)

    result = service.create_return_reminder(1, date(2024, 3, 20), NOW + timedelta(days=1))

    assert result is None
    assert [a.message for a in alerts.drain()] == [CREATE_RETURN_ERROR]


def test_delete_reminder_failure_returns_false():
    alerts = AlertLog()
    service = _service(RecordingGateway(fail=True), alerts)

    assert service.delete_reminder(str(uuid.uuid4())) is False
    assert [a.message for a in alerts.drain()] == [DELETE_REMINDER_ERROR]


def test_delete_with_malformed_id_raises_not_found():
    gateway = RecordingGateway()
    alerts = AlertLog()

    with pytest.raises(NotificationNotFoundError):
        _service(gateway, alerts).delete_reminder("abc")

    assert gateway.calls == []
    assert len(alerts) == 0


def test_create_manual_notification_combines_local_date_and_time():
    gateway = RecordingGateway()
    service = _service(gateway)
    payload = ManualNotificationCreate(
        titulo="Reunião",
        mensagem="Reunião com a equipe",
        data_exibicao=date(2024, 3, 11),
        hora_exibicao="8:30",
        telefone="  ",
    )

    service.create_manual_notification(payload)

    _, kwargs = gateway.calls[0]
    assert kwargs["notify_at"] == datetime(2024, 3, 11, 8, 30, tzinfo=SAO_PAULO)
    assert kwargs["telefone"] is None


def test_create_manual_notification_rejects_past_display_time():
    gateway = RecordingGateway()
    payload = ManualNotificationCreate(
        titulo="Reunião",
        mensagem="Reunião com a equipe",
        data_exibicao=date(2024, 3, 10),
        hora_exibicao="11:00",
    )

    with pytest.raises(NotificationValidationError) as excinfo:
        _service(gateway).create_manual_notification(payload)

    assert excinfo.value.message == DISPLAY_AT_IN_PAST
    assert gateway.calls == []


def test_create_manual_notification_reports_persistence_failure():
    alerts = AlertLog()
    payload = ManualNotificationCreate(
        titulo="Reunião",
        mensagem="Reunião com a equipe",
        data_exibicao=date(2024, 3, 12),
    )

    assert _service(RecordingGateway(fail=True), alerts).create_manual_notification(payload) is None
    assert [a.message for a in alerts.drain()] == [CREATE_MANUAL_ERROR]


@pytest.mark.parametrize(
    "field,value,message",
    [
        ("titulo", "Oi", "O título deve ter pelo menos 3 caracteres"),
        ("mensagem", "Oi!", "A mensagem deve ter pelo menos 5 caracteres"),
        ("hora_exibicao", "24:00", "Formato de hora inválido (HH:MM)"),
        ("hora_exibicao", "9h30", "Formato de hora inválido (HH:MM)"),
    ],
)
def test_manual_notification_form_rules(field, value, message):
    data = {
        "titulo": "Reunião",
        "mensagem": "Reunião com a equipe",
        "data_exibicao": date(2024, 3, 12),
        field: value,
    }
    with pytest.raises(ValidationError) as excinfo:
        ManualNotificationCreate(**data)
    assert message in str(excinfo.value)


def test_partition_reminders_splits_upcoming_and_past():
    today = date(2024, 3, 10)
    upcoming = _row(1, today)
    sent = _row(1, date(2024, 3, 20), sent=True)
    old = _row(1, date(2024, 3, 1))

    partition = partition_reminders([upcoming, sent, old], today)

    assert partition.upcoming == [upcoming]
    assert partition.past == [sent, old]


def test_list_reminders_filters_by_tab_and_search():
    today_local = date(2024, 3, 10)
    ana_next = _row(1, date(2024, 3, 12))
    ana_done = _row(1, date(2024, 3, 1))
    bia_next = _row(2, date(2024, 3, 15))
    gateway = RecordingGateway(
        reminders=[ana_done, ana_next, bia_next],
        contacts={
            1: PatientContact(nome="Ana Souza", telefone="11911112222"),
            2: PatientContact(nome="Beatriz Reis", telefone=None),
        },
    )
    service = _service(gateway)
    assert service.today() == today_local

    upcoming = service.list_reminders(tab=ReminderTab.upcoming)
    assert [row.reminder for row in upcoming] == [ana_next, bia_next]

    past = service.list_reminders(tab=ReminderTab.past)
    assert [row.reminder for row in past] == [ana_done]

    by_name = service.list_reminders(search="  beatriz ")
    assert [row.reminder for row in by_name] == [bia_next]

    by_phone = service.list_reminders(search="1111")
    assert [row.patient.nome for row in by_phone] == ["Ana Souza", "Ana Souza"]
