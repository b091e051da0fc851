from __future__ import annotations

import enum

from sqlalchemy import JSON, Boolean, Enum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from odontoped.models.base import Base, TimestampMixin


class BirthType(str, enum.Enum):
    natural = "Natural"
    cesarean = "Cesárea"


class Feeding(str, enum.Enum):
    breast = "Materno"
    formula = "Fórmula"


class HealthCondition(str, enum.Enum):
    """Yes/no questions of the anamnesis that carry an optional description."""

    alergia_medicamentos = "alergia_medicamentos"
    alergia_alimentar = "alergia_alimentar"
    doenca_cardiaca = "doenca_cardiaca"
    diabetes = "diabetes"
    disturbios_neurologicos = "disturbios_neurologicos"
    epilepsia_convulsoes = "epilepsia_convulsoes"
    hipertensao = "hipertensao"
    asma = "asma"
    doenca_renal = "doenca_renal"
    sindromes_geneticas = "sindromes_geneticas"
    doenca_autoimune = "doenca_autoimune"
    disturbios_coagulacao = "disturbios_coagulacao"
    uso_atual_medicamentos = "uso_atual_medicamentos"
    medicamentos_continuos = "medicamentos_continuos"
    uso_recente_antibioticos = "uso_recente_antibioticos"
    suplementos_nutricionais = "suplementos_nutricionais"
    tratamento_odontologico_anterior = "tratamento_odontologico_anterior"
    reacao_negativa_odontologica = "reacao_negativa_odontologica"
    necessidade_sedacao_especial = "necessidade_sedacao_especial"
    trauma_dental = "trauma_dental"
    ansiedade_consultas = "ansiedade_consultas"
    dificuldade_colaboracao = "dificuldade_colaboracao"
    historico_internacoes = "historico_internacoes"
    necessidades_especiais = "necessidades_especiais"
    nascimento_prematuro = "nascimento_prematuro"
    parto_complicacoes = "parto_complicacoes"
    uso_chupeta = "uso_chupeta"
    habitos_succao_bruxismo = "habitos_succao_bruxismo"
    amamentacao_prolongada = "amamentacao_prolongada"
    alimentacao_especial = "alimentacao_especial"
    realizou_cirurgia = "realizou_cirurgia"
    foi_internado = "foi_internado"
    transfusao_sangue = "transfusao_sangue"
    doencas_hereditarias = "doencas_hereditarias"
    historico_alergias_familia = "historico_alergias_familia"
    problemas_dentarios_familia = "problemas_dentarios_familia"


def _values(members):
    return [member.value for member in members]


class HealthHistory(Base, TimestampMixin):
    __tablename__ = "health_histories"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    patient_id: Mapped[int] = mapped_column(
        ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    queixa_principal: Mapped[str | None] = mapped_column(Text, nullable=True)
    tipo_parto: Mapped[BirthType | None] = mapped_column(
        Enum(BirthType, native_enum=False, length=20, values_callable=_values), nullable=True
    )
    aleitamento: Mapped[Feeding | None] = mapped_column(
        Enum(Feeding, native_enum=False, length=20, values_callable=_values), nullable=True
    )
    problemas_gestacao: Mapped[str | None] = mapped_column(Text, nullable=True)
    alergias: Mapped[str | None] = mapped_column(Text, nullable=True)
    tratamento_medico: Mapped[str | None] = mapped_column(Text, nullable=True)
    uso_medicamentos: Mapped[str | None] = mapped_column(Text, nullable=True)
    presenca_doenca: Mapped[str | None] = mapped_column(Text, nullable=True)
    idade_primeiro_dente: Mapped[str | None] = mapped_column(String(50), nullable=True)
    anestesia_odontologica: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    frequencia_escovacao: Mapped[str | None] = mapped_column(String(100), nullable=True)
    creme_dental: Mapped[str | None] = mapped_column(String(100), nullable=True)
    contem_fluor: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    uso_fio_dental: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    quem_realiza_escovacao: Mapped[str | None] = mapped_column(String(100), nullable=True)
    uso_mamadeira: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    refeicoes_diarias: Mapped[str | None] = mapped_column(String(50), nullable=True)
    fonte_acucar: Mapped[str | None] = mapped_column(Text, nullable=True)
    habito_succao: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    roer_unhas: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    dormir_boca_aberta: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    vacinacao_dia: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    problemas_cardiacos: Mapped[str | None] = mapped_column(Text, nullable=True)
    problemas_renais: Mapped[str | None] = mapped_column(Text, nullable=True)
    problemas_gastricos: Mapped[str | None] = mapped_column(Text, nullable=True)
    problemas_respiratorios: Mapped[str | None] = mapped_column(Text, nullable=True)
    alteracao_coagulacao: Mapped[str | None] = mapped_column(Text, nullable=True)
    internacoes_recentes: Mapped[str | None] = mapped_column(Text, nullable=True)
    peso_atual: Mapped[str | None] = mapped_column(String(20), nullable=True)
    # {condition: {"presente": bool, "descricao": str | None}}
    condicoes: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)

    patient = relationship("Patient", back_populates="health_history")
