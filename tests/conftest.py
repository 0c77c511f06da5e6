"""
Shared pytest fixtures: in-memory SQLite store, stubbed remote list, coordinator and API client.
"""
from typing import Any, Dict, Generator

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from grocery_backend.api.main import create_app
from grocery_backend.core.config import Settings
from grocery_backend.db import grocery_store
from grocery_backend.db.sqlalchemy import build_engine, build_session_factory
from grocery_backend.models.schemas import GroceryDraft
from grocery_backend.models.sql_models import GroceryItemRow
from grocery_backend.services.list_state import GroceryListState
from grocery_backend.services.remote_import import RemoteListClient

REMOTE_URL = "https://remote.example.test/api/v1/groceries"


@pytest.fixture
def settings() -> Settings:
    """Settings pointing at an in-memory store, without samples and without reading .env"""
    return Settings(
        _env_file=None,
        DATABASE_URL="sqlite://",
        SEED_SAMPLE_ITEMS=False,
        IMPORT_URL=REMOTE_URL,
        IMPORT_TIMEOUT_SECONDS=5.0,
    )


@pytest.fixture
def engine(settings):
    engine = build_engine(settings)
    grocery_store.init_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def db_session(session_factory) -> Generator[Session, None, None]:
    with session_factory() as session:
        yield session


@pytest.fixture
def drop_table(engine):
    """Simulate a broken store: every later statement fails."""
    def _drop():
        GroceryItemRow.__table__.drop(bind=engine)
    return _drop


@pytest.fixture
def remote_payload() -> Dict[str, Any]:
    """What the stubbed remote endpoint answers; tests mutate it."""
    return {"status": 200, "json": []}


@pytest.fixture
def remote_client(remote_payload) -> RemoteListClient:
    def handler(request: httpx.Request) -> httpx.Response:
        if "error" in remote_payload:
            raise remote_payload["error"]
        if "content" in remote_payload:
            return httpx.Response(remote_payload["status"], content=remote_payload["content"])
        return httpx.Response(remote_payload["status"], json=remote_payload["json"])

    return RemoteListClient(REMOTE_URL, timeout=5.0, transport=httpx.MockTransport(handler))


@pytest.fixture
def sample_drafts():
    return [
        GroceryDraft(name="Milk", quantity=1, category="Dairy"),
        GroceryDraft(name="Eggs", quantity=12, category="Protein"),
        GroceryDraft(name="Bread", quantity=1, category="Bakery"),
    ]


@pytest.fixture
def seeded_session(db_session, sample_drafts):
    grocery_store.seed_if_empty(db_session, sample_drafts)
    return db_session


@pytest.fixture
def list_state(session_factory, remote_client, seeded_session) -> GroceryListState:
    """Coordinator loaded with Milk, Eggs and Bread"""
    state = GroceryListState(session_factory, remote_client)
    assert state.load()
    return state


@pytest.fixture
def client(settings, remote_client) -> Generator[TestClient, None, None]:
    app = create_app(settings, remote_client=remote_client)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def seeded_client(settings, remote_client) -> Generator[TestClient, None, None]:
    app = create_app(settings.model_copy(update={"SEED_SAMPLE_ITEMS": True}), remote_client=remote_client)
    with TestClient(app) as test_client:
        yield test_client
