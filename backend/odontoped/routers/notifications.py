import asyncio

from fastapi import APIRouter, Depends, HTTPException, status

from odontoped.deps import (
    get_current_user,
    get_notification_feed,
    get_notification_gateway,
    get_reminder_service,
    raise_for_alerts,
)
from odontoped.models.user import User
from odontoped.schemas.manual_notification import ManualNotificationCreate, ManualNotificationOut
from odontoped.schemas.notification import (
    AlertOut,
    DismissOut,
    NotificationFeedOut,
    NotificationMessageOut,
    ReminderNotification,
)
from odontoped.services.alerts import Alert, error_messages
from odontoped.services.errors import NotificationNotFoundError, NotificationValidationError
from odontoped.services.notification_gateway import NotificationGateway
from odontoped.services.notifications import (
    MARK_SENT_ERROR,
    NotificationFeed,
    compose_message,
    send_link,
)
from odontoped.services.reminders import (
    CREATE_MANUAL_ERROR,
    DELETE_MANUAL_ERROR,
    LIST_MANUAL_ERROR,
    ReminderService,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])
manual_router = APIRouter(prefix="/manual-notifications", tags=["notifications"])


def _alerts_out(alerts: list[Alert]) -> list[AlertOut]:
    return [AlertOut.model_validate(alert) for alert in alerts]


def _feed_out(feed: NotificationFeed, collected: list[Alert]) -> NotificationFeedOut:
    return NotificationFeedOut(
        notifications=feed.notifications,
        unread_count=feed.unread_count,
        loading=feed.loading,
        last_loaded_at=feed.last_loaded_at,
        alerts=_alerts_out(feed.alerts.drain() + collected),
    )


@router.get("", response_model=NotificationFeedOut)
async def get_notifications(
    _user: User = Depends(get_current_user),
    feed: NotificationFeed = Depends(get_notification_feed),
):
    with feed.alerts.collect() as collected:
        if feed.last_loaded_at is None:
            await feed.load()
    return _feed_out(feed, collected)


@router.post("/refresh", response_model=NotificationFeedOut)
async def refresh_notifications(
    _user: User = Depends(get_current_user),
    feed: NotificationFeed = Depends(get_notification_feed),
):
    with feed.alerts.collect() as collected:
        await feed.load()
    return _feed_out(feed, collected)


@router.post("/{notification_id}/dismiss", response_model=DismissOut)
async def dismiss_notification(
    notification_id: str,
    _user: User = Depends(get_current_user),
    feed: NotificationFeed = Depends(get_notification_feed),
):
    with feed.alerts.collect() as collected:
        try:
            dismissed = await feed.mark_as_sent(notification_id)
        except NotificationNotFoundError:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found"
            )
    if not dismissed:
        raise_for_alerts(collected, MARK_SENT_ERROR)
    return DismissOut(
        id=notification_id,
        dismissed=True,
        unread_count=feed.unread_count,
        alerts=_alerts_out(collected),
    )


@router.get("/{notification_id}/message", response_model=NotificationMessageOut)
async def get_notification_message(
    notification_id: str,
    _user: User = Depends(get_current_user),
    feed: NotificationFeed = Depends(get_notification_feed),
    gateway: NotificationGateway = Depends(get_notification_gateway),
):
    notification = feed.find(notification_id)
    if notification is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")

    contact = None
    if isinstance(notification, ReminderNotification):
        contacts = await asyncio.to_thread(gateway.patient_contacts, [notification.patient_id])
        contact = contacts.get(notification.patient_id)
    phone, message = compose_message(notification, contact)
    return NotificationMessageOut(
        id=notification.id,
        kind=notification.kind,
        phone=phone,
        message=message,
        send_url=send_link(phone, message),
    )


@manual_router.get("", response_model=list[ManualNotificationOut])
def list_manual_notifications(
    _user: User = Depends(get_current_user),
    service: ReminderService = Depends(get_reminder_service),
):
    with service.alerts.collect() as collected:
        notifications = service.list_manual_notifications()
    if error_messages(collected):
        raise_for_alerts(collected, LIST_MANUAL_ERROR)
    return notifications


@manual_router.post("", response_model=ManualNotificationOut, status_code=status.HTTP_201_CREATED)
def create_manual_notification(
    payload: ManualNotificationCreate,
    _user: User = Depends(get_current_user),
    service: ReminderService = Depends(get_reminder_service),
):
    with service.alerts.collect() as collected:
        try:
            notification = service.create_manual_notification(payload)
        except NotificationValidationError as exc:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=exc.message
            )
    if notification is None:
        raise_for_alerts(collected, CREATE_MANUAL_ERROR)
    return notification


@manual_router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_manual_notification(
    notification_id: str,
    _user: User = Depends(get_current_user),
    service: ReminderService = Depends(get_reminder_service),
):
    with service.alerts.collect() as collected:
        try:
            deleted = service.delete_manual_notification(notification_id)
        except NotificationNotFoundError:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found"
            )
    if not deleted:
        raise_for_alerts(collected, DELETE_MANUAL_ERROR)
