from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from readability_study.content import ContentStore
from readability_study.db import Database
from readability_study.main import create_app
from readability_study.sessions import SessionRegistry
from readability_study.telemetry import TelemetryLedger


@pytest.fixture()
def database() -> Iterator[Database]:
    db = Database("sqlite://")
    db.create_all()
    try:
        yield db
    finally:
        db.dispose()


@pytest.fixture()
def content(database: Database) -> ContentStore:
    return ContentStore(database)


@pytest.fixture()
def registry(database: Database) -> SessionRegistry:
    return SessionRegistry(database)


@pytest.fixture()
def ledger(database: Database) -> TelemetryLedger:
    return TelemetryLedger(database)


@pytest.fixture()
def client() -> Iterator[TestClient]:
    app = create_app(Database("sqlite://"), seed=True)
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def empty_client() -> Iterator[TestClient]:
    app = create_app(Database("sqlite://"), seed=False)
    with TestClient(app) as c:
        yield c
