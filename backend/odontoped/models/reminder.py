from __future__ import annotations

import enum
import uuid
from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, Enum, ForeignKey, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from odontoped.models.base import Base, TimestampMixin


class ReminderType(str, enum.Enum):
    return_visit = "return"
    birthday = "birthday"


class Reminder(Base, TimestampMixin):
    __tablename__ = "reminders"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    patient_id: Mapped[int] = mapped_column(
        ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    type: Mapped[ReminderType] = mapped_column(
        Enum(
            ReminderType,
            name="reminder_type",
            values_callable=lambda members: [member.value for member in members],
        ),
        default=ReminderType.return_visit,
        nullable=False,
    )
    target_date: Mapped[date] = mapped_column(Date, nullable=False)
    notify_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    message_template: Mapped[str | None] = mapped_column(Text, nullable=True)
    sent: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    patient = relationship("Patient", back_populates="reminders")
