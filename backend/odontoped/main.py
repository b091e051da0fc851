import asyncio
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from odontoped.core.settings import settings, validate_settings
from odontoped.db.session import SessionLocal, engine
from odontoped.models import Base
from odontoped.routers.appointments import router as appointments_router
from odontoped.routers.audit import router as audit_router
from odontoped.routers.auth import router as auth_router
from odontoped.routers.dashboard import router as dashboard_router
from odontoped.routers.intake import router as intake_router
from odontoped.routers.notifications import manual_router as manual_notifications_router
from odontoped.routers.notifications import router as notifications_router
from odontoped.routers.patients import router as patients_router
from odontoped.routers.public_forms import router as public_forms_router
from odontoped.routers.reminders import patient_router as patient_reminders_router
from odontoped.routers.reminders import router as reminders_router
from odontoped.routers.settings import router as settings_router
from odontoped.services.alerts import AlertLog
from odontoped.services.notification_gateway import NotificationGateway
from odontoped.services.notifications import NotificationFeed, run_periodic_refresh
from odontoped.services.reminders import ReminderService
from odontoped.services.users import seed_initial_admin

app = FastAPI(title="Odontoped Admin API", version="0.1.0")
logger = logging.getLogger("odontoped.startup")


def configure_notifications(app: FastAPI, session_factory) -> None:
    alerts = AlertLog()
    gateway = NotificationGateway(session_factory)
    app.state.alerts = alerts
    app.state.notification_gateway = gateway
    app.state.notification_feed = NotificationFeed(gateway, alerts=alerts)
    app.state.reminder_service = ReminderService(gateway, alerts=alerts)
    app.state.refresh_task = None


configure_notifications(app, SessionLocal)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    request_id = request.headers.get("x-request-id")
    logger.exception("Unhandled server error", extra={"request_id": request_id})
    payload = {"detail": "Internal server error"}
    if request_id:
        payload["request_id"] = request_id
    return JSONResponse(status_code=500, content=payload)


@app.on_event("startup")
def startup():
    validate_settings(settings)
    Base.metadata.create_all(bind=engine)

    admin_email = str(settings.admin_email)
    admin_password = settings.admin_password.strip()
    db: Session = SessionLocal()
    try:
        created = seed_initial_admin(db, email=admin_email, password=admin_password)
        if created:
            logger.info("Initial admin created for %s.", admin_email)
        else:
            logger.info("Initial admin not created (users already exist).")
    finally:
        db.close()


@app.on_event("startup")
async def start_notification_refresh():
    if not settings.notification_refresh_enabled:
        logger.info("Notification refresh disabled.")
        return
    app.state.refresh_task = asyncio.create_task(
        run_periodic_refresh(
            app.state.notification_feed,
            interval_seconds=settings.notification_refresh_seconds,
        )
    )


@app.on_event("shutdown")
async def stop_notification_refresh():
    task = app.state.refresh_task
    if task is None:
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
    app.state.refresh_task = None


@app.get("/health")
def health():
    return {"status": "ok"}


app.include_router(auth_router)
app.include_router(patients_router)
app.include_router(intake_router)
app.include_router(public_forms_router)
app.include_router(patient_reminders_router)
app.include_router(reminders_router)
app.include_router(notifications_router)
app.include_router(manual_notifications_router)
app.include_router(appointments_router)
app.include_router(settings_router)
app.include_router(dashboard_router)
app.include_router(audit_router)
