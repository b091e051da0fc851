from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ACCESS_TOKEN_PURPOSE = "access"
INTAKE_FORM_PURPOSE = "intake_form"


class InvalidTokenError(ValueError):
    pass


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def _encode(
    *,
    subject: str,
    purpose: str,
    secret: str,
    alg: str,
    expires_in: timedelta,
    extra: dict[str, Any] | None = None,
) -> str:
    now = datetime.now(timezone.utc)
    to_encode: dict[str, Any] = {
        "sub": subject,
        "purpose": purpose,
        "iat": int(now.timestamp()),
        "exp": int((now + expires_in).timestamp()),
    }
    if extra:
        to_encode.update(extra)
    return jwt.encode(to_encode, secret, algorithm=alg)


def _decode_subject(token: str, *, purpose: str, secret: str, alg: str) -> str:
    try:
        payload = jwt.decode(token, secret, algorithms=[alg])
    except JWTError as exc:
        raise InvalidTokenError("Invalid token") from exc
    subject = payload.get("sub")
    if payload.get("purpose") != purpose or not subject:
        raise InvalidTokenError("Invalid token")
    return str(subject)


def create_access_token(
    *,
    subject: str,
    secret: str,
    alg: str,
    expires_minutes: int,
    extra: dict[str, Any] | None = None,
) -> str:
    return _encode(
        subject=subject,
        purpose=ACCESS_TOKEN_PURPOSE,
        secret=secret,
        alg=alg,
        expires_in=timedelta(minutes=expires_minutes),
        extra=extra,
    )


def decode_access_token(token: str, *, secret: str, alg: str) -> int:
    subject = _decode_subject(token, purpose=ACCESS_TOKEN_PURPOSE, secret=secret, alg=alg)
    try:
        return int(subject)
    except ValueError as exc:
        raise InvalidTokenError("Invalid token") from exc


def create_form_token(*, patient_id: int, secret: str, alg: str, expires_hours: int) -> str:
    """Signed link token that lets a guardian open and sign one intake form."""
    return _encode(
        subject=str(patient_id),
        purpose=INTAKE_FORM_PURPOSE,
        secret=secret,
        alg=alg,
        expires_in=timedelta(hours=expires_hours),
    )


def decode_form_token(token: str, *, secret: str, alg: str) -> int:
    subject = _decode_subject(token, purpose=INTAKE_FORM_PURPOSE, secret=secret, alg=alg)
    try:
        return int(subject)
    except ValueError as exc:
        raise InvalidTokenError("Invalid token") from exc
