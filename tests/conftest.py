"""
Pytest fixtures: in-memory SQLite database, HTTP client, fake Redis and seed rows.

Each test gets fresh tables. The app's get_db dependency is overridden to hand
out the test session, so route commits/rollbacks act on the same data the
test inspects.
"""

import json
import os
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Generator

# 앱 import 전에 설정 (모듈 로드 시점에 읽힘)
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("RUN_MIGRATIONS_ON_STARTUP", "false")
os.environ.setdefault("QR_CODE_SECRET", "test-qr-secret")

import pytest
import pytest_asyncio
from fakeredis import aioredis as fake_aioredis
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from vibehub.database import get_db
from vibehub.main import app
from vibehub.models import Base, Meetup, User, Venue
from vibehub.realtime import notifications

test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(bind=test_engine, autoflush=False, expire_on_commit=False)


def future(**kwargs) -> datetime:
    return datetime.now(timezone.utc) + timedelta(**kwargs)


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    """Create tables, yield session, then drop tables for isolation."""
    Base.metadata.create_all(test_engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(test_engine)


@pytest_asyncio.fixture
async def client(db_session: Session) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the DB dependency with the test session."""

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def fake_redis(monkeypatch):
    client = fake_aioredis.FakeRedis(decode_responses=True)
    monkeypatch.setattr(notifications, "redis_client", client)
    return client


@pytest.fixture
def published(fake_redis, monkeypatch) -> list:
    """(channel, message dict) pairs published during the test."""
    sent = []
    original = fake_redis.publish

    async def recording_publish(channel, message):
        sent.append((channel, json.loads(message)))
        return await original(channel, message)

    monkeypatch.setattr(fake_redis, "publish", recording_publish)
    return sent


def _add_user(db: Session, user_id: str, first_name: str) -> User:
    user = User(id=user_id, first_name=first_name, last_name="Kim", display_name=first_name)
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def creator(db_session: Session) -> User:
    return _add_user(db_session, "user-creator", "Mina")


@pytest.fixture
def joiner(db_session: Session) -> User:
    return _add_user(db_session, "user-joiner", "Joon")


@pytest.fixture
def other_user(db_session: Session) -> User:
    return _add_user(db_session, "user-other", "Sora")


@pytest.fixture
def venue(db_session: Session) -> Venue:
    v = Venue(id="venue-1", name="Cafe Onion", address="1 Main St", city="Seoul", rating=4.5, review_count=12)
    db_session.add(v)
    db_session.commit()
    return v


@pytest.fixture
def other_venue(db_session: Session) -> Venue:
    v = Venue(id="venue-2", name="Rooftop Bar", city="Seoul")
    db_session.add(v)
    db_session.commit()
    return v


@pytest.fixture
def make_meetup(db_session: Session, creator: User):
    """Insert a meetup directly (bypassing the lifecycle) with sensible defaults."""

    def _make(**overrides) -> Meetup:
        values = {
            "title": "Board games night",
            "description": "Bring snacks",
            "start_time": future(days=3),
            "creator_id": creator.id,
            "status": "UPCOMING",
            "member_count": 0,
            "tags": [],
        }
        values.update(overrides)
        meetup = Meetup(**values)
        db_session.add(meetup)
        db_session.commit()
        return meetup

    return _make


def headers(user_id: str) -> dict:
    return {"X-User-Id": user_id}
