"""
Pytest fixtures for test database, client, and seeded seats/students.

Each test gets a fresh database file (or TEST_DATABASE_URL when set). On
SQLite every transaction is opened with BEGIN IMMEDIATE so that concurrent
sessions queue on the write lock instead of failing with "database is locked".
"""

import os

os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("ENVIRONMENT", "test")

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from studyspace.db.base import Base
from studyspace.db.session import get_db
from studyspace.main import app
from studyspace.models import Seat, Student

LIBRARY_ID = "library1"
ROOM_ID = "R1"


@pytest.fixture
def database_url(tmp_path) -> str:
    return os.environ.get("TEST_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'studyspace_test.db'}")


@pytest_asyncio.fixture(scope="function")
async def engine(database_url: str):
    """Create tables, yield engine, then drop tables for isolation."""
    is_sqlite = database_url.startswith("sqlite")
    connect_args = {"timeout": 30} if is_sqlite else {}
    test_engine = create_async_engine(database_url, echo=False, connect_args=connect_args)

    if is_sqlite:
        @event.listens_for(test_engine.sync_engine, "connect")
        def _disable_implicit_begin(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None

        @event.listens_for(test_engine.sync_engine, "begin")
        def _begin_immediate(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest_asyncio.fixture
async def interleaved_session_factory(database_url: str, engine) -> AsyncGenerator[async_sessionmaker, None]:
    """
    Sessions whose reads take no write lock, so two booking attempts can be
    stepped through in a chosen order.

    BEGIN IMMEDIATE would make every SQLite attempt run start to finish on its
    own. Here SQLite runs in driver autocommit instead, and a reader only sees
    a rival's writes through the version tokens, the way a READ COMMITTED
    server does.
    """
    is_sqlite = database_url.startswith("sqlite")
    connect_args = {"timeout": 30} if is_sqlite else {}
    interleaved_engine = create_async_engine(database_url, echo=False, connect_args=connect_args)

    if is_sqlite:
        @event.listens_for(interleaved_engine.sync_engine, "connect")
        def _autocommit(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None

    yield async_sessionmaker(interleaved_engine, class_=AsyncSession, expire_on_commit=False)

    await interleaved_engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client whose requests each get their own session on the test database."""

    async def override_get_db():
        async with session_factory() as session:
            yield session
            await session.commit()

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _seed(session_factory, *rows):
    async with session_factory() as session:
        session.add_all(rows)
        await session.commit()


@pytest_asyncio.fixture
async def seats(session_factory) -> dict[str, Seat]:
    """Standard seats S1, S2, a premium P1 and a basic seat with custom rates."""
    rows = {
        "S1": Seat(library_id=LIBRARY_ID, room_id=ROOM_ID, id="S1", seat_number="1", tier="standard", version=1),
        "S2": Seat(library_id=LIBRARY_ID, room_id=ROOM_ID, id="S2", seat_number="2", tier="standard", version=1),
        "P1": Seat(library_id=LIBRARY_ID, room_id=ROOM_ID, id="P1", seat_number="3", tier="premium", version=1),
        "C1": Seat(
            library_id=LIBRARY_ID, room_id=ROOM_ID, id="C1", seat_number="4", tier="basic",
            custom_pricing={"hourly": 100, "monthly": 5000}, version=1,
        ),
    }
    await _seed(session_factory, *rows.values())
    return rows


@pytest_asyncio.fixture
async def students(session_factory) -> dict[str, Student]:
    rows = {
        "ST1": Student(library_id=LIBRARY_ID, id="ST1", name="Asha Rao", status="active", version=1),
        "ST2": Student(library_id=LIBRARY_ID, id="ST2", name="Vikram Shah", status="active", version=1),
        "ST3": Student(library_id=LIBRARY_ID, id="ST3", name="Meera Iyer", status="active", version=1),
        "OLD": Student(library_id=LIBRARY_ID, id="OLD", name="Former Member", status="inactive", version=1),
    }
    await _seed(session_factory, *rows.values())
    return rows
