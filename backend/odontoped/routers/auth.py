from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from odontoped.core.security import create_access_token, verify_password
from odontoped.core.settings import settings
from odontoped.db.session import get_db
from odontoped.deps import get_current_user, jwt_secret
from odontoped.models.user import User
from odontoped.schemas.auth import LoginRequest, Token, UserOut
from odontoped.services.rate_limit import LoginThrottle
from odontoped.services.users import get_user_by_email

router = APIRouter(prefix="/auth", tags=["auth"])

LOGIN_THROTTLE = LoginThrottle(
    per_account=settings.login_attempts_per_account,
    per_address=settings.login_attempts_per_address,
    window_seconds=settings.login_window_seconds,
)


@router.post("/login", response_model=Token)
def login(payload: LoginRequest, request: Request, db: Session = Depends(get_db)):
    ip_address = request.client.host if request.client else "unknown"
    if not LOGIN_THROTTLE.allow(payload.email, ip_address):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail="Too many login attempts"
        )

    user = get_user_by_email(db, payload.email)
    if user and not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account disabled")
    if not user or not verify_password(payload.password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    LOGIN_THROTTLE.succeeded(payload.email, ip_address)
    token = create_access_token(
        subject=str(user.id),
        secret=jwt_secret(),
        alg=settings.jwt_alg,
        expires_minutes=settings.access_token_expire_minutes,
        extra={"role": user.role.value, "email": user.email},
    )
    return Token(access_token=token)


@router.get("/me", response_model=UserOut)
def me(user: User = Depends(get_current_user)):
    return user
