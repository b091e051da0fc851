import os

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key-that-is-long-enough-123")
os.environ.setdefault("NOTIFICATION_REFRESH_ENABLED", "false")

from datetime import date, datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from odontoped.core.security import create_access_token
from odontoped.core.settings import settings
from odontoped.db.session import SessionLocal, get_db
from odontoped.deps import jwt_secret
from odontoped.main import app, configure_notifications
from odontoped.models import Base, ManualNotification, Patient, Reminder, ReminderType
from odontoped.models.user import Role
from odontoped.services.users import create_user


@pytest.fixture(scope="session")
def admin_credentials():
    return "admin@example.com", "ChangeMe123!"


@pytest.fixture()
def engine(tmp_path):
    engine = create_engine(
        f"sqlite+pysqlite:///{tmp_path / 'odontoped.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def admin_user(session_factory, admin_credentials):
    email, password = admin_credentials
    with session_factory() as db:
        return create_user(
            db, email=email, password=password, full_name="Admin", role=Role.superadmin
        )


@pytest.fixture()
def api_client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    configure_notifications(app, session_factory)
    yield TestClient(app)
    app.dependency_overrides.clear()
    configure_notifications(app, SessionLocal)


def _bearer(user) -> dict[str, str]:
    token = create_access_token(
        subject=str(user.id),
        secret=jwt_secret(),
        alg=settings.jwt_alg,
        expires_minutes=settings.access_token_expire_minutes,
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def auth_headers(admin_user):
    return _bearer(admin_user)


@pytest.fixture()
def reception_headers(session_factory):
    with session_factory() as db:
        user = create_user(
            db, email="recepcao@example.com", password="Recepcao123!", role=Role.reception
        )
    return _bearer(user)


def seed_patient(session, **overrides) -> Patient:
    values = {"nome": "Ana Souza", "telefone": "11987654321"}
    values.update(overrides)
    patient = Patient(**values)
    session.add(patient)
    session.commit()
    session.refresh(patient)
    return patient


def seed_reminder(session, patient_id: int, **overrides) -> Reminder:
    now = datetime.now(timezone.utc)
    values = {
        "patient_id": patient_id,
        "type": ReminderType.return_visit,
        "target_date": date.today() + timedelta(days=7),
        "notify_at": now - timedelta(hours=1),
        "sent": False,
    }
    values.update(overrides)
    reminder = Reminder(**values)
    session.add(reminder)
    session.commit()
    session.refresh(reminder)
    return reminder


def seed_manual_notification(session, **overrides) -> ManualNotification:
    values = {
        "titulo": "Comprar luvas",
        "mensagem": "Repor estoque de luvas",
        "notify_at": datetime.now(timezone.utc) - timedelta(minutes=5),
        "sent": False,
    }
    values.update(overrides)
    notification = ManualNotification(**values)
    session.add(notification)
    session.commit()
    session.refresh(notification)
    return notification
