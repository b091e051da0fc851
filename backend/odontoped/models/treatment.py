from __future__ import annotations

from datetime import date

from sqlalchemy import Date, ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from odontoped.models.base import Base, TimestampMixin


class TreatmentPlan(Base, TimestampMixin):
    __tablename__ = "treatments"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    patient_id: Mapped[int] = mapped_column(
        ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    plano_tratamento: Mapped[str] = mapped_column(Text, nullable=False, default="")

    patient = relationship("Patient", back_populates="treatment_plan")


class TreatmentRecord(Base, TimestampMixin):
    __tablename__ = "treatment_records"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    patient_id: Mapped[int] = mapped_column(
        ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    data_realizacao: Mapped[date] = mapped_column(Date, nullable=False)
    descricao_procedimento: Mapped[str] = mapped_column(Text, nullable=False)

    patient = relationship("Patient", back_populates="treatment_records")
