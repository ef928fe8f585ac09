"""Shared fixtures: a scripted remote client and an in-memory job store."""

import httpx
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from splittrack.core import database
from splittrack.remote.schemas import RemoteVisitor

EXISTING_VISITOR_ID = "00000000-0000-0000-0000-000000000000"


class FakeClient:
    """Stands in for ``TestTrackClient``; records every call.

    ``fail`` names the methods that should raise a transport error.
    """

    def __init__(self, split_registry=None, assignment_registry=None, remote_visitor=None, fail=()):
        self.split_registry = split_registry if split_registry is not None else {}
        self.assignment_registry = assignment_registry if assignment_registry is not None else {}
        self.remote_visitor = remote_visitor
        if isinstance(fail, dict):
            self.fail = dict(fail)
        else:
            self.fail = {name: httpx.ConnectError("connection refused") for name in fail}
        self.calls: list[tuple] = []

    def _record(self, name, *args):
        self.calls.append((name, *args))
        if name in self.fail:
            raise self.fail[name]

    def calls_to(self, name):
        return [c[1:] for c in self.calls if c[0] == name]

    def fetch_split_registry(self):
        self._record("fetch_split_registry")
        return self.split_registry

    def fetch_assignment_registry(self, visitor_id):
        self._record("fetch_assignment_registry", visitor_id)
        return dict(self.assignment_registry)

    def create_identifier(self, identifier_type, visitor_id, value):
        self._record("create_identifier", identifier_type, visitor_id, value)
        if self.remote_visitor is not None:
            return self.remote_visitor
        return RemoteVisitor(id=visitor_id, assignment_registry={})

    def create_assignment(self, visitor_id, split_name, variant):
        self._record("create_assignment", visitor_id, split_name, variant)


@pytest.fixture
def split_registry():
    return {
        "blue_button": {"false": 50, "true": 50},
        "quagmire": {"untenable": 50, "manageable": 50},
        "time": {"hammertime": 100, "clobberin_time": 0},
    }


@pytest.fixture
def assignment_registry():
    return {"blue_button": "true", "time": "waits_for_no_man"}


@pytest.fixture
def fake_client(split_registry, assignment_registry):
    return FakeClient(split_registry=split_registry, assignment_registry=assignment_registry)


@pytest.fixture
def db_factory(monkeypatch):
    """In-memory job store, installed as the process session factory."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    database.init_db(bind=engine)
    factory = sessionmaker(bind=engine, expire_on_commit=False)
    monkeypatch.setattr(database, "SessionLocal", factory)
    yield factory
    engine.dispose()


@pytest.fixture
def db(db_factory):
    with db_factory() as session:
        yield session
