"""
Concurrent joins must keep member_count within max_attendees.

The file-backed SQLite run always executes: the guarded seat UPDATE is atomic
there too, and BEGIN IMMEDIATE makes writers queue on the database lock.
The PostgreSQL run exercises SELECT ... FOR UPDATE and needs
VIBEHUB_TEST_POSTGRES_URL pointing at a disposable database.
"""

import os
from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy import create_engine, event, func, select
from sqlalchemy.orm import sessionmaker

from conftest import future
from vibehub.core.errors import Full, VibeError
from vibehub.crud.member_crud import join_meetup
from vibehub.models import Base, Meetup, MeetupMember, Ticket, User

POSTGRES_URL = os.getenv("VIBEHUB_TEST_POSTGRES_URL")

CAPACITY = 5
JOINERS = 20


def _seed(make_session) -> str:
    with make_session() as db:
        db.add_all([User(id=f"u-{i}", first_name=f"User{i}") for i in range(JOINERS + 1)])
        meetup = Meetup(
            title="Tiny room",
            start_time=future(days=1),
            creator_id="u-0",
            location="Room 101",
            max_attendees=CAPACITY,
            status="UPCOMING",
            tags=[],
        )
        db.add(meetup)
        db.commit()
        return meetup.id


def _race(make_session, meetup_id: str) -> list:
    def attempt(user_id: str) -> str:
        with make_session() as db:
            try:
                join_meetup(db, meetup_id, user_id)
                db.commit()
                return "joined"
            except Full:
                db.rollback()
                return "full"
            except VibeError:
                db.rollback()
                return "error"

    with ThreadPoolExecutor(max_workers=JOINERS) as pool:
        return list(pool.map(attempt, [f"u-{i}" for i in range(1, JOINERS + 1)]))


def _assert_capacity_held(make_session, meetup_id: str, outcomes: list) -> None:
    assert outcomes.count("joined") == CAPACITY
    assert outcomes.count("full") == JOINERS - CAPACITY

    with make_session() as db:
        stored = db.get(Meetup, meetup_id)
        members = db.scalar(select(func.count()).select_from(MeetupMember).where(MeetupMember.meetup_id == meetup_id))
        tickets = db.scalar(select(func.count()).select_from(Ticket).where(Ticket.meetup_id == meetup_id))
        assert stored.member_count == members == tickets == CAPACITY


@pytest.fixture
def sqlite_sessionmaker(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
        pool_size=JOINERS,
        max_overflow=0,
    )

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    Base.metadata.create_all(engine)
    try:
        yield sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    finally:
        engine.dispose()


@pytest.fixture
def pg_sessionmaker():
    engine = create_engine(POSTGRES_URL, pool_size=JOINERS, max_overflow=0)
    Base.metadata.create_all(engine)
    try:
        yield sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    finally:
        Base.metadata.drop_all(engine)
        engine.dispose()


def test_concurrent_joins_never_exceed_capacity_sqlite(sqlite_sessionmaker):
    meetup_id = _seed(sqlite_sessionmaker)
    outcomes = _race(sqlite_sessionmaker, meetup_id)
    _assert_capacity_held(sqlite_sessionmaker, meetup_id, outcomes)


@pytest.mark.skipif(not POSTGRES_URL, reason="VIBEHUB_TEST_POSTGRES_URL not set")
def test_concurrent_joins_never_exceed_capacity_postgres(pg_sessionmaker):
    meetup_id = _seed(pg_sessionmaker)
    outcomes = _race(pg_sessionmaker, meetup_id)
    _assert_capacity_held(pg_sessionmaker, meetup_id, outcomes)
