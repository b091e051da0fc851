import re
from datetime import date, datetime, time
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

TIME_PATTERN = re.compile(r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$")


class ManualNotificationCreate(BaseModel):
    titulo: str
    mensagem: str
    data_exibicao: date
    hora_exibicao: str = "09:00"
    telefone: Optional[str] = None

    @field_validator("titulo")
    @classmethod
    def _check_titulo(cls, value: str) -> str:
        if len(value) < 3:
            raise ValueError("O título deve ter pelo menos 3 caracteres")
        return value

    @field_validator("mensagem")
    @classmethod
    def _check_mensagem(cls, value: str) -> str:
        if len(value) < 5:
            raise ValueError("A mensagem deve ter pelo menos 5 caracteres")
        return value

    @field_validator("hora_exibicao")
    @classmethod
    def _check_hora(cls, value: str) -> str:
        if not TIME_PATTERN.match(value):
            raise ValueError("Formato de hora inválido (HH:MM)")
        return value

    @field_validator("telefone")
    @classmethod
    def _blank_phone(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        return value.strip()

    @property
    def display_time(self) -> time:
        hours, minutes = self.hora_exibicao.split(":")
        return time(int(hours), int(minutes))


class ManualNotificationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    titulo: str
    mensagem: str
    notify_at: datetime
    telefone: Optional[str] = None
    sent: bool
    created_at: Optional[datetime] = None
