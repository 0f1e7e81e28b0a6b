"""Shared fixtures: a fresh in-memory SQLite schema per test."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from cronhooks.db import Base
from cronhooks.log_store import TaskLogStore
from cronhooks.main import app, get_db, get_notifier
from cronhooks.schemas import TaskCreate
from cronhooks.task_store import TaskStore

from .fakes import RecordingNotifier

WEBHOOK = "https://discord.com/api/webhooks/123/abc"


@pytest.fixture()
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture()
def db(session_factory):
    with session_factory() as session:
        yield session


@pytest.fixture()
def task_store(db) -> TaskStore:
    return TaskStore(db, allowed_prefixes=["https://discord.com/api/webhooks/"])


@pytest.fixture()
def log_store(db) -> TaskLogStore:
    return TaskLogStore(db)


@pytest.fixture()
def make_task(task_store):
    def _make(**overrides):
        fields = {
            "name": "Nightly Sync",
            "schedule": "0 0 * * *",
            "webhook_url": WEBHOOK,
            "payload": {"content": "hello"},
            "max_retry": 3,
            "status": "active",
        }
        fields.update(overrides)
        return task_store.create(TaskCreate(**fields))

    return _make


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def client(session_factory, notifier):
    def _get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    # not used as a context manager: lifespan (wait_for_db, create_all) is skipped
    yield TestClient(app)
    app.dependency_overrides.clear()
