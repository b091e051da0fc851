from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from odontoped.models.health_history import BirthType, Feeding, HealthCondition
from odontoped.models.patient import PatientFormStatus

SIGNATURE_REQUIRED = "Por favor, assine o formulário antes de enviar"


class ConditionAnswer(BaseModel):
    presente: bool = False
    descricao: Optional[str] = None

    @model_validator(mode="after")
    def _drop_description_when_absent(self):
        if not self.presente:
            self.descricao = None
        return self


class HealthHistoryIn(BaseModel):
    queixa_principal: Optional[str] = None
    tipo_parto: Optional[BirthType] = None
    aleitamento: Optional[Feeding] = None
    problemas_gestacao: Optional[str] = None
    alergias: Optional[str] = None
    tratamento_medico: Optional[str] = None
    uso_medicamentos: Optional[str] = None
    presenca_doenca: Optional[str] = None
    idade_primeiro_dente: Optional[str] = None
    anestesia_odontologica: bool = False
    frequencia_escovacao: Optional[str] = None
    creme_dental: Optional[str] = None
    contem_fluor: bool = False
    uso_fio_dental: bool = False
    quem_realiza_escovacao: Optional[str] = None
    uso_mamadeira: bool = False
    refeicoes_diarias: Optional[str] = None
    fonte_acucar: Optional[str] = None
    habito_succao: bool = False
    roer_unhas: bool = False
    dormir_boca_aberta: bool = False
    vacinacao_dia: bool = False
    problemas_cardiacos: Optional[str] = None
    problemas_renais: Optional[str] = None
    problemas_gastricos: Optional[str] = None
    problemas_respiratorios: Optional[str] = None
    alteracao_coagulacao: Optional[str] = None
    internacoes_recentes: Optional[str] = None
    peso_atual: Optional[str] = None
    condicoes: dict[HealthCondition, ConditionAnswer] = Field(default_factory=dict)

    def column_values(self) -> dict:
        values = self.model_dump(exclude={"condicoes"})
        values["condicoes"] = {
            condition.value: answer.model_dump() for condition, answer in self.condicoes.items()
        }
        return values


class HealthHistoryOut(HealthHistoryIn):
    model_config = ConfigDict(from_attributes=True)

    id: int
    patient_id: int
    created_at: datetime
    updated_at: datetime


class TreatmentPlanIn(BaseModel):
    plano_tratamento: str


class TreatmentPlanOut(TreatmentPlanIn):
    model_config = ConfigDict(from_attributes=True)

    id: int
    patient_id: int
    updated_at: datetime


class TreatmentRecordCreate(BaseModel):
    data_realizacao: date
    descricao_procedimento: str = Field(min_length=1)


class TreatmentRecordUpdate(BaseModel):
    data_realizacao: Optional[date] = None
    descricao_procedimento: Optional[str] = Field(default=None, min_length=1)


class TreatmentRecordOut(TreatmentRecordCreate):
    model_config = ConfigDict(from_attributes=True)

    id: int
    patient_id: int
    created_at: datetime
    updated_at: datetime


class FormLinkOut(BaseModel):
    patient_id: int
    status: PatientFormStatus
    token: str
    url: str
    expires_at: datetime


class PublicPatientOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    nome: str
    data_nascimento: Optional[date] = None
    nome_responsavel: Optional[str] = None
    cpf: Optional[str] = None
    telefone: Optional[str] = None
    endereco: Optional[str] = None


class PublicFormOut(BaseModel):
    patient: PublicPatientOut
    status: PatientFormStatus
    health_history: Optional[HealthHistoryOut] = None
    treatment_plan: Optional[TreatmentPlanOut] = None


class FormSignatureIn(BaseModel):
    assinatura: str

    @field_validator("assinatura")
    @classmethod
    def _require_signature(cls, value: str) -> str:
        if not value.strip():
            raise ValueError(SIGNATURE_REQUIRED)
        return value


class FormSignedOut(BaseModel):
    status: PatientFormStatus
    assinatura_timestamp: datetime


class PatientStatusCountsOut(BaseModel):
    total: int
    rascunho: int
    enviado: int
    assinado: int
