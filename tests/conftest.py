import itertools

import pytest
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

from jobportal import database
from jobportal.main import app
from jobportal.schemas.job import JobCreate
from jobportal.schemas.user import UserCreate
from jobportal.services.companies import create_company
from jobportal.services.jobs import create_job
from jobportal.services.users import register_user
from jobportal.utils import email as mailer
from jobportal.utils.auth import token_for_user

_counter = itertools.count(1)


class Outbox:
    """Stands in for the SMTP sender and records every message."""

    def __init__(self):
        self.messages = []
        self.fail = False

    async def send(self, to, subject, text=None, html=None):
        if self.fail:
            raise RuntimeError("SMTP server unreachable")
        self.messages.append({"to": to, "subject": subject, "text": text, "html": html})
        return True


@pytest.fixture
async def db(monkeypatch):
    mock_db = AsyncMongoMockClient()[f"jobportal_test_{next(_counter)}"]
    monkeypatch.setattr(database, "db", mock_db)
    await database.ensure_indexes(mock_db)
    return mock_db


@pytest.fixture(autouse=True)
def outbox(monkeypatch):
    box = Outbox()
    monkeypatch.setattr(mailer, "send_email", box.send)
    return box


@pytest.fixture
async def client(db):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def make_user(db):
    async def _make_user(role="candidate", **overrides):
        n = next(_counter)
        data = {
            "full_name": f"{role.title()} {n}",
            "email": f"{role}{n}@jobportal.io",
            "phone_number": f"+1415555{n:04d}",
            "password": "secret123",
            "role": role,
        }
        data.update(overrides)
        return await register_user(db, UserCreate(**data))

    return _make_user


@pytest.fixture
def make_company(db):
    async def _make_company(employer, name="Acme Corp"):
        company, _ = await create_company(
            db, employer, {"name": name, "description": "We build things", "location": "Remote"}
        )
        employer["company"] = company["_id"]
        return company

    return _make_company


@pytest.fixture
def make_job(db, make_company):
    async def _make_job(employer, position=1, **overrides):
        if not await db.companies.find_one({"user_id": employer["_id"]}):
            await make_company(employer)
        data = {
            "title": "Backend Engineer",
            "description": "Build APIs",
            "requirements": ["Python", "MongoDB"],
            "salary": 90000,
            "experience_level": "Mid",
            "location": "Berlin",
            "job_type": "Full-time",
            "position": position,
        }
        data.update(overrides)
        job, _ = await create_job(db, employer, JobCreate(**data))
        return job

    return _make_job


@pytest.fixture
def auth():
    def _auth(user):
        return {"Authorization": f"Bearer {token_for_user(user)}"}

    return _auth
