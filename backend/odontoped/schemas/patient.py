from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from odontoped.models.patient import PatientFormStatus


class PatientBase(BaseModel):
    nome: str = Field(min_length=1)
    data_nascimento: Optional[date] = None
    telefone: Optional[str] = None
    endereco: Optional[str] = None
    nome_responsavel: Optional[str] = None
    cpf: Optional[str] = None
    observacoes: Optional[str] = None
    status: PatientFormStatus = PatientFormStatus.draft


class PatientCreate(PatientBase):
    pass


class PatientUpdate(BaseModel):
    nome: Optional[str] = Field(default=None, min_length=1)
    data_nascimento: Optional[date] = None
    telefone: Optional[str] = None
    endereco: Optional[str] = None
    nome_responsavel: Optional[str] = None
    cpf: Optional[str] = None
    observacoes: Optional[str] = None
    status: Optional[PatientFormStatus] = None
    assinatura_dentista: Optional[str] = None


class PatientOut(PatientBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    idade: Optional[int] = None
    telefone_formatado: Optional[str] = None
    cpf_formatado: Optional[str] = None
    assinatura_base64: Optional[str] = None
    assinatura_timestamp: Optional[datetime] = None
    assinatura_dentista: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None


class PatientSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    nome: str
    telefone: Optional[str] = None
