import os

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret")

import random
import uuid

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from orbit import models  # noqa: F401
from orbit.database import Base
from orbit.repo import ConnectionStore, MessageStore, ProfileStore, RoomStore


class ZeroRandom(random.Random):
    """random() is always 0.0, so tiebreaks vanish and choice() picks the first item."""

    def random(self):
        return 0.0


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite+pysqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        future=True,
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    engine.dispose()


@pytest.fixture
def threaded_session_factory(tmp_path):
    engine = create_engine(
        f"sqlite+pysqlite:///{tmp_path / 'orbit.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
        future=True,
    )

    @event.listens_for(engine, "connect")
    def _connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    engine.dispose()


@pytest.fixture
def profiles(session_factory):
    return ProfileStore(session_factory)


@pytest.fixture
def connection_store(session_factory):
    return ConnectionStore(session_factory)


@pytest.fixture
def room_store(session_factory):
    return RoomStore(session_factory)


@pytest.fixture
def message_store(session_factory):
    return MessageStore(session_factory)


@pytest.fixture
def make_profile(profiles):
    def _make(username: str = "", interests=None, quiz_answers=None, age: int = 16) -> str:
        user_id = str(uuid.uuid4())
        profiles.create(
            user_id,
            username or f"user_{user_id[:6]}",
            age,
            interests if interests is not None else ["gaming"],
            quiz_answers if quiz_answers is not None else [0] * 8,
        )
        return user_id

    return _make


def fill_room(store: RoomStore, tags: list[str], members: int) -> str:
    room = store.create_room_with_member(name="Seeded", tags=tags, user_id=str(uuid.uuid4()))
    for _ in range(members - 1):
        assert store.claim_seat(str(room["id"]), str(uuid.uuid4())) is True
    return str(room["id"])


@pytest.fixture
def zero_rng():
    return ZeroRandom()


@pytest.fixture(name="fill_room")
def fill_room_fixture():
    return fill_room
