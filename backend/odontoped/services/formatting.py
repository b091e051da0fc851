"""Display helpers for dates, phone numbers and CPF in Brazilian format."""

from __future__ import annotations

import re
from datetime import date, datetime, tzinfo

from odontoped.core.settings import settings

MONTH_NAMES = (
    "Janeiro",
    "Fevereiro",
    "Março",
    "Abril",
    "Maio",
    "Junho",
    "Julho",
    "Agosto",
    "Setembro",
    "Outubro",
    "Novembro",
    "Dezembro",
)

_NON_DIGITS = re.compile(r"\D")


def _local(value: datetime, tz: tzinfo | None) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(tz or settings.tzinfo)


def _coerce(value: date | datetime | str) -> date | datetime:
    if isinstance(value, str):
        if len(value) == 10:
            return date.fromisoformat(value)
        return datetime.fromisoformat(value)
    return value


def format_date(value: date | datetime | str, *, tz: tzinfo | None = None) -> str:
    value = _coerce(value)
    if isinstance(value, datetime):
        value = _local(value, tz)
    return value.strftime("%d/%m/%Y")


def format_date_time(value: datetime | str, *, tz: tzinfo | None = None) -> str:
    value = _coerce(value)
    if not isinstance(value, datetime):
        value = datetime.combine(value, datetime.min.time())
    return _local(value, tz).strftime("%d/%m/%Y %H:%M")


def digits_only(value: str) -> str:
    return _NON_DIGITS.sub("", value)


def format_phone(phone: str) -> str:
    digits = digits_only(phone)
    if len(digits) == 11:
        return f"({digits[:2]}) {digits[2:7]}-{digits[7:]}"
    if len(digits) == 10:
        return f"({digits[:2]}) {digits[2:6]}-{digits[6:]}"
    return digits


def format_cpf(cpf: str) -> str:
    digits = digits_only(cpf)
    if len(digits) > 11:
        return digits
    digits = digits.zfill(11)
    return f"{digits[:3]}.{digits[3:6]}.{digits[6:9]}-{digits[9:]}"


def get_age(birth_date: date, *, today: date | None = None) -> int:
    today = today or date.today()
    age = today.year - birth_date.year
    if (today.month, today.day) < (birth_date.month, birth_date.day):
        age -= 1
    return age


def month_name(month: int) -> str:
    """Portuguese name for a 1-based month number."""
    return MONTH_NAMES[month - 1]
