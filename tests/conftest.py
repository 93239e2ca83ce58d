from datetime import date, time

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from reportflow.core import security
from reportflow.db import models, session
from reportflow.db.models import Base
from reportflow.dependencies import get_today
from reportflow.main import app
from reportflow.services.messaging import SendResult, get_message_sender
from reportflow.services.report_policy import duration_minutes

TODAY = date(2026, 3, 10)
PASSWORD = "secret-pass"
PASSWORD_HASH = security.get_password_hash(PASSWORD)


class FakeSender:
    def __init__(self):
        self.sent = []
        self.succeed = True

    async def send(self, phone, body):
        self.sent.append((phone, body))
        if self.succeed:
            return SendResult(True)
        return SendResult(False, "Messaging API error: 503")


class CollectingRunner:
    """Holds submitted work so a test can run it explicitly."""

    def __init__(self):
        self.tasks = []

    def submit(self, fn, *args, **kwargs):
        self.tasks.append((fn, args, kwargs))


class Factory:
    def __init__(self, db):
        self.db = db

    def employee(self, email, role="employee", phone=None, full_name=None):
        employee = models.Employee(
            email=email,
            full_name=full_name or email.split("@")[0].title(),
            phone=phone,
            role=role,
            hashed_password=PASSWORD_HASH,
        )
        self.db.add(employee)
        self.db.commit()
        return employee

    def relation(self, employee, supervisor, start_date, end_date=None, kind="Direct", is_active=True):
        relation = models.SupervisorRelation(
            employee_id=employee.id,
            supervisor_id=supervisor.id,
            kind=kind,
            is_active=is_active,
            start_date=start_date,
            end_date=end_date,
        )
        self.db.add(relation)
        self.db.commit()
        return relation

    def report(self, owner, day=TODAY, status="Submitted", start=time(9, 0), end=time(10, 30),
               rating=None, category="Development", name="Write API docs"):
        report = models.ActivityReport(
            employee_id=owner.id,
            activity_date=day,
            category=category,
            name=name,
            description="Document the report endpoints",
            start_time=start,
            end_time=end,
            duration_minutes=duration_minutes(start, end),
            status=status,
            quality_rating=rating,
        )
        self.db.add(report)
        self.db.commit()
        return report


@pytest.fixture
def session_factory(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'reportflow_test.db'}", connect_args={"check_same_thread": False}
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autoflush=False, autocommit=False)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def make(db):
    return Factory(db)


@pytest.fixture
def sender():
    return FakeSender()


@pytest.fixture
def runner():
    return CollectingRunner()


@pytest.fixture
def client(session_factory, sender):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[session.get_db] = override_get_db
    app.dependency_overrides[session.get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_message_sender] = lambda: sender
    app.dependency_overrides[get_today] = lambda: TODAY
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth(employee) -> dict[str, str]:
    token = security.create_access_token({"sub": employee.email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers():
    return auth
