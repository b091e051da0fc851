from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone, tzinfo

from sqlalchemy import select
from sqlalchemy.orm import Session

from odontoped.core.settings import settings
from odontoped.models.appointment import Appointment

UPCOMING_LIMIT = 5
START_AFTER_END = "A hora de início deve ser anterior à hora de fim"


def local_to_utc(value: datetime, tz: tzinfo | None = None) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=tz or settings.tzinfo)
    return value.astimezone(timezone.utc)


def validate_appointment_window(starts_at: datetime, ends_at: datetime) -> tuple[bool, str | None]:
    if starts_at >= ends_at:
        return False, START_AFTER_END
    return True, None


def day_bounds(day: date, tz: tzinfo | None = None) -> tuple[datetime, datetime]:
    zone = tz or settings.tzinfo
    start = datetime.combine(day, time.min, tzinfo=zone)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=zone)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def upcoming_appointments(
    db: Session, *, now: datetime, limit: int = UPCOMING_LIMIT
) -> list[Appointment]:
    stmt = (
        select(Appointment)
        .where(Appointment.data_hora_inicio >= now.astimezone(timezone.utc))
        .order_by(Appointment.data_hora_inicio.asc())
        .limit(limit)
    )
    return list(db.scalars(stmt))


def appointments_for_day(db: Session, day: date, tz: tzinfo | None = None) -> list[Appointment]:
    start, end = day_bounds(day, tz)
    stmt = (
        select(Appointment)
        .where(Appointment.data_hora_inicio >= start, Appointment.data_hora_inicio < end)
        .order_by(Appointment.data_hora_inicio.asc())
    )
    return list(db.scalars(stmt))
