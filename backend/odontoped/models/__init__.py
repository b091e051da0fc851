from odontoped.models.base import Base
from odontoped.models.user import Role, User
from odontoped.models.audit_log import AuditAction, AuditEntity, AuditLog
from odontoped.models.patient import Patient, PatientFormStatus
from odontoped.models.health_history import BirthType, Feeding, HealthCondition, HealthHistory
from odontoped.models.treatment import TreatmentPlan, TreatmentRecord
from odontoped.models.reminder import Reminder, ReminderType
from odontoped.models.manual_notification import ManualNotification
from odontoped.models.appointment import Appointment
from odontoped.models.site_settings import SiteSettings

__all__ = [
    "Base",
    "Role",
    "User",
    "AuditAction",
    "AuditEntity",
    "AuditLog",
    "Patient",
    "PatientFormStatus",
    "BirthType",
    "Feeding",
    "HealthCondition",
    "HealthHistory",
    "TreatmentPlan",
    "TreatmentRecord",
    "Reminder",
    "ReminderType",
    "ManualNotification",
    "Appointment",
    "SiteSettings",
]
