from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from odontoped.db.session import get_db
from odontoped.deps import get_current_user, get_reminder_service, raise_for_alerts
from odontoped.models.user import User
from odontoped.schemas.intake import PatientStatusCountsOut
from odontoped.schemas.reminder import UpcomingBirthdayOut, UpcomingOverviewOut, reminder_row_out
from odontoped.services.alerts import error_messages
from odontoped.services.intake import DashboardPeriod, period_start, status_counts
from odontoped.services.reminders import OVERVIEW_ERROR, ReminderService

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/reminders", response_model=UpcomingOverviewOut)
def dashboard_reminders(
    _user: User = Depends(get_current_user),
    service: ReminderService = Depends(get_reminder_service),
):
    with service.alerts.collect() as collected:
        overview = service.upcoming_overview()
    if error_messages(collected):
        raise_for_alerts(collected, OVERVIEW_ERROR)
    return UpcomingOverviewOut(
        reminders=[reminder_row_out(row) for row in overview.reminders],
        birthdays=[UpcomingBirthdayOut.model_validate(b) for b in overview.birthdays],
    )


@router.get("/patients", response_model=PatientStatusCountsOut)
def patient_status_counts(
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
    period: DashboardPeriod = Query(default=DashboardPeriod.all),
):
    since = period_start(period, datetime.now(timezone.utc))
    return PatientStatusCountsOut(**status_counts(db, since=since))
