import os
import queue
import random
from datetime import date, datetime, timedelta

import pytest

# Set testing environment before the application reads its settings
os.environ["TESTING"] = "1"
os.environ["TEST_DATABASE_URL"] = "sqlite:///./test.db"

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from clinic_rotation.main import app
from clinic_rotation.core.config import settings
from clinic_rotation.core.database import get_db, get_redis, Base
from jose import jwt

from clinic_rotation.core.security import UserRole
from clinic_rotation.models.clinician import Clinician
from clinic_rotation.models import queue as queue_models  # noqa: F401
from clinic_rotation.services.notifier import ChangeNotifier
from clinic_rotation.services.queue_store import QueueStore
from clinic_rotation.services.roster import ClinicianRoster
from clinic_rotation.services.rotation_service import RotationService

# Create test database
SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

QUEUE_DATE = date(2026, 10, 18)


class FakePubSub:
    def __init__(self, broker):
        self.broker = broker
        self.channels = set()
        self.messages = queue.Queue()
        self.closed = False

    def subscribe(self, channel):
        self.channels.add(channel)
        self.broker.subscribers.append(self)

    def get_message(self, timeout=0.0):
        try:
            return self.messages.get_nowait()
        except queue.Empty:
            return None

    def close(self):
        self.closed = True
        if self in self.broker.subscribers:
            self.broker.subscribers.remove(self)


class FakeRedis:
    """In-memory stand-in for the pub/sub part of a Redis client."""

    def __init__(self):
        self.published = []
        self.subscribers = []

    def publish(self, channel, message):
        self.published.append((channel, message))
        receivers = [s for s in self.subscribers if channel in s.channels]
        for subscriber in receivers:
            subscriber.messages.put({"type": "message", "channel": channel, "data": message})
        return len(receivers)

    def pubsub(self, ignore_subscribe_messages=False):
        return FakePubSub(self)


@pytest.fixture(scope="function")
def test_db():
    # Create tables
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(test_db):
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def notifier(fake_redis):
    return ChangeNotifier(fake_redis, settings.QUEUE_CHANNEL)


def add_clinician(db, name, role=UserRole.DOCTOR, eligible=True, active=True):
    clinician = Clinician(
        name=name, role=role, eligible_for_rotation=eligible, is_active=active
    )
    db.add(clinician)
    db.commit()
    db.refresh(clinician)
    return clinician


@pytest.fixture
def doctors(db):
    """Three rotation doctors plus staff who never enter the rotation."""
    roster = [add_clinician(db, name) for name in ("Dr. Aydin", "Dr. Baran", "Dr. Cem")]
    add_clinician(db, "Front Desk", role=UserRole.FRONT_DESK)
    add_clinician(db, "Assistant", role=UserRole.ASSISTANT)
    add_clinician(db, "Clinic Admin", role=UserRole.ADMIN)
    return roster


def make_service(db, notifier=None, seed=7, **kwargs):
    return RotationService(
        QueueStore(db),
        ClinicianRoster(db),
        notifier=notifier,
        rng=random.Random(seed),
        **kwargs
    )


@pytest.fixture
def service(db, notifier):
    return make_service(db, notifier)


def override_get_db():
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()


@pytest.fixture
def client(test_db, fake_redis):
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = lambda: fake_redis
    app.state.assignment_monitor.clear()
    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client
    app.dependency_overrides.clear()


def create_access_token(data, expires_delta=timedelta(minutes=30)):
    """Mint a token the way the auth collaborator does."""
    to_encode = dict(data, exp=datetime.utcnow() + expires_delta, token_type="access")
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def auth_headers(role, user_id=1):
    token = create_access_token({"sub": str(user_id), "name": "Operator", "role": role.value})
    return {"Authorization": f"Bearer {token}"}
