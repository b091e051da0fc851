"""Outbound message text for reminders and birthday greetings.

Everything here is a pure string formatter: the same input always renders
the same text.
"""

from __future__ import annotations

from datetime import date
from typing import Protocol
from urllib.parse import quote

from odontoped.core.settings import settings
from odontoped.services.formatting import format_date

NAME_PLACEHOLDER = "{{nome}}"
DATE_PLACEHOLDER = "{{data}}"


class ReturnReminderLike(Protocol):
    target_date: date
    message_template: str | None


class BirthdayLike(Protocol):
    nome: str
    dias_ate_aniversario: int


def first_name(full_name: str) -> str:
    parts = full_name.split()
    return parts[0] if parts else full_name


def get_return_message(reminder: ReturnReminderLike, patient_name: str) -> str:
    target = format_date(reminder.target_date)
    if reminder.message_template:
        return reminder.message_template.replace(NAME_PLACEHOLDER, patient_name).replace(
            DATE_PLACEHOLDER, target
        )
    return (
        f"Olá. O retorno de {patient_name} está próximo. "
        f"Será no dia {target}. Posso confirmar?"
    )


def get_birthday_message(birthday: BirthdayLike, *, practice_name: str | None = None) -> str:
    practice = practice_name or settings.practice_name
    name = first_name(birthday.nome)
    if birthday.dias_ate_aniversario == 0:
        return (
            f"Olá! A equipe da {practice} deseja um feliz aniversário para {name}! 🎂🎉 "
            "Que seja um dia especial, cheio de alegria e sorrisos! 😊"
        )
    return (
        f"Olá! Amanhã é o aniversário de {name} e a equipe da {practice} "
        "quer enviar nossos votos antecipados de feliz aniversário! 🎂🎉"
    )


def whatsapp_url(phone: str, message: str, *, base_url: str | None = None) -> str:
    base = base_url or settings.messaging_base_url
    return f"{base}?phone={phone}&text={quote(message, safe='')}"
