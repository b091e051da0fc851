from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from odontoped.core.security import InvalidTokenError, decode_access_token
from odontoped.core.settings import settings
from odontoped.db.session import get_db
from odontoped.models.user import User
from odontoped.services.alerts import Alert, error_messages
from odontoped.services.notification_gateway import NotificationGateway
from odontoped.services.notifications import NotificationFeed
from odontoped.services.reminders import ReminderService


def jwt_secret() -> str:
    return settings.secret_key or settings.jwt_secret or "change-me"


def get_current_user(
    db: Session = Depends(get_db), authorization: str | None = Header(default=None)
) -> User:
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing bearer token")
    token = authorization.split(" ", 1)[1].strip()
    try:
        user_id = decode_access_token(token, secret=jwt_secret(), alg=settings.jwt_alg)
    except InvalidTokenError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    user = db.scalar(select(User).where(User.id == user_id))
    if not user or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Inactive user")
    return user


def require_admin(user: User = Depends(get_current_user)) -> User:
    if user.role.value != "superadmin":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return user


def get_notification_feed(request: Request) -> NotificationFeed:
    return request.app.state.notification_feed


def get_reminder_service(request: Request) -> ReminderService:
    return request.app.state.reminder_service


def raise_for_alerts(alerts: list[Alert], fallback: str) -> None:
    messages = error_messages(alerts)
    raise HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail="; ".join(messages) if messages else fallback,
    )


def get_notification_gateway(request: Request) -> NotificationGateway:
    return request.app.state.notification_gateway
