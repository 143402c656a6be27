"""Shared pytest fixtures for backend tests."""

from __future__ import annotations

from typing import Iterator

import pytest
from fastapi.testclient import TestClient
from passlib.context import CryptContext
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool


from app.core import security
from app.database import get_db
from app.main import app
from app.models import Base
from app.services import RoomResolver, SqlMessageStore, get_message_store, get_room_resolver
from orgchat.realtime import LocalPresenceRegistry, get_presence_registry

security.pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


@pytest.fixture()
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture()
def test_engine() -> Iterator[Engine]:
    """Provide an in-memory SQLite engine for isolated tests."""

    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture()
def session_factory(test_engine) -> sessionmaker[Session]:
    """Return a session factory bound to the test engine."""

    return sessionmaker(bind=test_engine, future=True)


@pytest.fixture()
def db_session(session_factory) -> Iterator[Session]:
    """Yield a SQLAlchemy session for unit tests."""

    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def room_resolver(session_factory) -> RoomResolver:
    return RoomResolver(session_factory)


@pytest.fixture()
def message_store(session_factory) -> SqlMessageStore:
    return SqlMessageStore(session_factory)


@pytest.fixture()
def presence_registry() -> LocalPresenceRegistry:
    return LocalPresenceRegistry()


@pytest.fixture()
def client(session_factory, room_resolver, message_store, presence_registry) -> Iterator[TestClient]:
    """Yield a FastAPI TestClient with database and realtime dependencies overridden."""

    def override_get_db() -> Iterator[Session]:
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_room_resolver] = lambda: room_resolver
    app.dependency_overrides[get_message_store] = lambda: message_store
    app.dependency_overrides[get_presence_registry] = lambda: presence_registry
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
