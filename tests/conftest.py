import os

# settings are read at import time
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-afp-personnel")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["EMAIL_HOST"] = ""


import pytest
from fastapi.testclient import TestClient

from app.database import Database
from app.main import create_app
from app.models import Company, Personnel, User
from app.utils.hash import hash_password
from app.utils.jwt_handler import create_access_token

PASSWORD = "Secret123!"
PASSWORD_HASH = hash_password(PASSWORD)


class RecordingMailer:
    """Stands in for EmailService; keeps every notification instead of sending it."""

    def __init__(self):
        self.sent = []

    async def send_document_status(self, to_email, name, document_name, status, comments=None):
        self.sent.append(("document_status", to_email, document_name, status, comments))
        return True

    async def send_rids_review(self, to_email, name, approved, reason=None):
        self.sent.append(("rids_review", to_email, approved, reason))
        return True


@pytest.fixture
def database():
    database = Database("sqlite://")
    database.create_all()
    database.connect()
    yield database
    database.dispose()


@pytest.fixture
def db(database):
    session = database.session()
    yield session
    session.close()


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def client(database, mailer):
    return TestClient(create_app(database=database, mailer=mailer))


def make_user(db, email, role="reservist", company="Alpha Company", **fields):
    first, _, last = email.split("@")[0].partition(".")
    user = User(
        first_name=fields.pop("first_name", first.title()),
        last_name=fields.pop("last_name", (last or "User").title()),
        email=email,
        password_hash=PASSWORD_HASH,
        role=role,
        company=company,
        status=fields.pop("status", "active"),
        **fields,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_personnel(db, name, rank="Private", company=None, **fields):
    person = Personnel(name=name, rank=rank, company_name=company, **fields)
    db.add(person)
    db.commit()
    db.refresh(person)
    return person


def auth_headers(user, role=None):
    token = create_access_token({"sub": user.id, "role": role or user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin(db):
    return make_user(db, "maria.santos@afp.mil.ph", role="admin", company="Headquarters")


@pytest.fixture
def staff(db):
    return make_user(db, "jose.reyes@afp.mil.ph", role="staff", company="Alpha Company")


@pytest.fixture
def bravo_staff(db):
    return make_user(db, "ana.cruz@afp.mil.ph", role="staff", company="Bravo Company")


@pytest.fixture
def reservist(db):
    return make_user(
        db,
        "juan.delacruz@afp.mil.ph",
        role="reservist",
        company="Alpha Company",
        rank="Private",
        service_id="SN-1001",
    )


@pytest.fixture
def bravo_reservist(db):
    return make_user(
        db,
        "pedro.garcia@afp.mil.ph",
        role="reservist",
        company="Bravo Company",
        rank="Private",
        service_id="SN-2001",
    )


@pytest.fixture
def alpha_company(db):
    company = Company(name="Alpha Company", code="A")
    db.add(company)
    db.commit()
    db.refresh(company)
    return company
