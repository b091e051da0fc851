from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date
from typing import Iterable


@dataclass(frozen=True)
class UpcomingBirthday:
    id: int
    nome: str
    data_nascimento: date
    dias_ate_aniversario: int
    telefone: str | None = None


def _birthday_in_year(birth_date: date, year: int) -> date:
    if birth_date.month == 2 and birth_date.day == 29 and not calendar.isleap(year):
        return date(year, 2, 28)
    return birth_date.replace(year=year)


def days_until_birthday(birth_date: date, today: date) -> int:
    upcoming = _birthday_in_year(birth_date, today.year)
    if upcoming < today:
        upcoming = _birthday_in_year(birth_date, today.year + 1)
    return (upcoming - today).days


def upcoming_birthdays(
    patients: Iterable[tuple[int, str, date, str | None]],
    *,
    days_ahead: int,
    today: date,
) -> list[UpcomingBirthday]:
    """Patients whose next birthday falls within ``days_ahead`` days, inclusive.

    ``patients`` yields ``(id, nome, data_nascimento, telefone)`` rows. The
    result is ordered by days remaining, then name.
    """
    results: list[UpcomingBirthday] = []
    for patient_id, nome, birth_date, telefone in patients:
        if birth_date is None:
            continue
        days = days_until_birthday(birth_date, today)
        if days > days_ahead:
            continue
        results.append(
            UpcomingBirthday(
                id=patient_id,
                nome=nome,
                data_nascimento=birth_date,
                dias_ate_aniversario=days,
                telefone=telefone,
            )
        )
    results.sort(key=lambda row: (row.dias_ate_aniversario, row.nome.lower()))
    return results
