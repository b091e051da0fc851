from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from odontoped.schemas.patient import PatientSummary


class AppointmentCreate(BaseModel):
    titulo: str = Field(min_length=1)
    descricao: Optional[str] = None
    data_hora_inicio: datetime
    data_hora_fim: datetime
    patient_id: Optional[int] = None
    cor: Optional[str] = None


class AppointmentUpdate(BaseModel):
    titulo: Optional[str] = Field(default=None, min_length=1)
    descricao: Optional[str] = None
    data_hora_inicio: Optional[datetime] = None
    data_hora_fim: Optional[datetime] = None
    patient_id: Optional[int] = None
    cor: Optional[str] = None


class AppointmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    titulo: str
    descricao: Optional[str] = None
    data_hora_inicio: datetime
    data_hora_fim: datetime
    patient_id: Optional[int] = None
    patient: Optional[PatientSummary] = None
    cor: Optional[str] = None
    created_at: datetime
    updated_at: datetime
