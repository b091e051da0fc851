from __future__ import annotations

import enum
from datetime import date, datetime

from sqlalchemy import Date, DateTime, Enum, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from odontoped.models.base import Base, SoftDeleteMixin, TimestampMixin
from odontoped.services.formatting import format_cpf, format_phone, get_age


class PatientFormStatus(str, enum.Enum):
    draft = "rascunho"
    sent = "enviado"
    signed = "assinado"


class Patient(Base, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "patients"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    nome: Mapped[str] = mapped_column(String(200), nullable=False)
    data_nascimento: Mapped[date | None] = mapped_column(Date, nullable=True, index=True)
    telefone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    endereco: Mapped[str | None] = mapped_column(Text, nullable=True)
    nome_responsavel: Mapped[str | None] = mapped_column(String(200), nullable=True)
    cpf: Mapped[str | None] = mapped_column(String(14), nullable=True)
    observacoes: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[PatientFormStatus] = mapped_column(
        Enum(
            PatientFormStatus,
            name="patient_form_status",
            values_callable=lambda members: [member.value for member in members],
        ),
        default=PatientFormStatus.draft,
        nullable=False,
    )
    assinatura_base64: Mapped[str | None] = mapped_column(Text, nullable=True)
    assinatura_timestamp: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    assinatura_dentista: Mapped[str | None] = mapped_column(Text, nullable=True)

    reminders = relationship(
        "Reminder", back_populates="patient", cascade="all, delete-orphan", passive_deletes=True
    )
    appointments = relationship("Appointment", back_populates="patient")
    health_history = relationship(
        "HealthHistory", back_populates="patient", uselist=False, passive_deletes=True
    )
    treatment_plan = relationship(
        "TreatmentPlan", back_populates="patient", uselist=False, passive_deletes=True
    )
    treatment_records = relationship(
        "TreatmentRecord",
        back_populates="patient",
        order_by="TreatmentRecord.data_realizacao.desc()",
        passive_deletes=True,
    )

    @property
    def idade(self) -> int | None:
        if self.data_nascimento is None:
            return None
        return get_age(self.data_nascimento)

    @property
    def telefone_formatado(self) -> str | None:
        return format_phone(self.telefone) if self.telefone else None

    @property
    def cpf_formatado(self) -> str | None:
        return format_cpf(self.cpf) if self.cpf else None
