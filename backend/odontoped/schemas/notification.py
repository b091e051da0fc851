from __future__ import annotations

from datetime import date, datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from odontoped.models.reminder import ReminderType
from odontoped.services.alerts import AlertLevel

BIRTHDAY_ID_PREFIX = "birthday-"


class ReminderNotification(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["reminder"] = "reminder"
    id: str
    patient_id: int
    type: ReminderType = ReminderType.return_visit
    target_date: date
    notify_at: datetime
    message_template: Optional[str] = None
    sent: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class BirthdayNotification(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["birthday"] = "birthday"
    id: str
    nome: str
    data_nascimento: date
    dias_ate_aniversario: int
    telefone: Optional[str] = None
    virtual: Literal[True] = True


class ManualNotificationItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["manual"] = "manual"
    id: str
    titulo: str
    mensagem: str
    notify_at: datetime
    telefone: Optional[str] = None
    sent: bool = False
    created_at: Optional[datetime] = None


Notification = Annotated[
    Union[ReminderNotification, BirthdayNotification, ManualNotificationItem],
    Field(discriminator="kind"),
]


class AlertOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    level: AlertLevel
    message: str
    created_at: datetime


class NotificationFeedOut(BaseModel):
    notifications: list[Notification]
    unread_count: int
    loading: bool = False
    last_loaded_at: Optional[datetime] = None
    alerts: list[AlertOut] = []


class DismissOut(BaseModel):
    id: str
    dismissed: bool
    unread_count: int
    alerts: list[AlertOut] = []


class NotificationMessageOut(BaseModel):
    id: str
    kind: Literal["reminder", "birthday", "manual"]
    phone: Optional[str] = None
    message: str
    send_url: Optional[str] = None
