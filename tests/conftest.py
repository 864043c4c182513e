from __future__ import annotations

import sys
from pathlib import Path

import pytest
from werkzeug.security import generate_password_hash

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from causas import create_app
from causas.core.config import Config
from causas.core.extensions import db
from causas.core.models import Especialidad, User, UserRole

PASSWORD = "secreto123"


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SECRET_KEY = "test-secret"
    SENDGRID_API_KEY = ""
    MAIL_FROM = ""
    TRANSACTION_MAX_ATTEMPTS = 3


class RecordingMailer:
    def __init__(self) -> None:
        self.configured = True
        self.fail_with: Exception | None = None
        self.sent: list[dict[str, str]] = []

    def is_configured(self) -> bool:
        return self.configured

    def send(self, to: str, subject: str, body: str) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append({"to": to, "subject": subject, "body": body})


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def app(mailer):
    app = create_app(TestConfig, mailer=mailer)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def file_app(tmp_path, mailer):
    """App on a sqlite file, for tests that open sessions from several threads."""

    class FileConfig(TestConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'causas.db'}"

    app = create_app(FileConfig, mailer=mailer)
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.drop_all()
        db.engine.dispose()


@pytest.fixture
def client(app):
    return app.test_client()


def add_user(
    email: str,
    specialties: list[Especialidad] | None = None,
    practicing: bool = True,
    role: UserRole = UserRole.LAWYER,
) -> int:
    user = User(
        email=email,
        password_hash=generate_password_hash(PASSWORD),
        role=role,
        is_practicing=practicing,
    )
    user.specialties = list(specialties or [])
    db.session.add(user)
    db.session.flush()
    return user.id


@pytest.fixture
def firm(app):
    """Familia pool of three practicing lawyers (ana < bruno < carla by email)."""
    with app.app_context():
        familia = Especialidad(name="Familia")
        laboral = Especialidad(name="Laboral")
        db.session.add_all([familia, laboral])
        db.session.flush()

        ids = {
            "familia": familia.id,
            "laboral": laboral.id,
            "admin": add_user("admin@estudio.local", practicing=False, role=UserRole.ADMIN),
            "creador": add_user("creador@estudio.local", [laboral]),
            "ana": add_user("ana@estudio.local", [familia]),
            "bruno": add_user("bruno@estudio.local", [familia, laboral]),
            "carla": add_user("carla@estudio.local", [familia]),
            "dario": add_user("dario@estudio.local", [laboral]),
            "elena": add_user("elena@estudio.local", [familia], practicing=False),
        }
        db.session.commit()
        return ids


@pytest.fixture
def login_as(client):
    def _login(email: str, password: str = PASSWORD):
        return client.post("/auth/login", json={"email": email, "password": password})

    return _login


@pytest.fixture
def create_case(client):
    def _create(specialty_id: int, **overrides):
        payload = {
            "caratulaTentativa": "Perez c/ Gomez s/ alimentos",
            "specialtyId": str(specialty_id),
            "objeto": "Cuota alimentaria",
            "resumen": "Reclamo de cuota alimentaria provisoria",
            "jurisdiccion": "caba",
            "broughtByParticipates": True,
            "assignmentMode": "auto",
        }
        payload.update(overrides)
        return client.post("/api/createCaseWithInvites", json=payload)

    return _create


@pytest.fixture
def respond(client):
    def _respond(case_id: int, invite_id: int, decision: str):
        return client.post(
            "/api/respondInvite",
            json={"caseId": str(case_id), "inviteId": str(invite_id), "decision": decision},
        )

    return _respond
