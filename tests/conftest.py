"""Pytest fixtures for the Tasks API tests."""

from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from tasks_api.app.main import create_app
from tasks_api.config import Settings


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing at a throwaway SQLite store."""
    return Settings(
        store_url=f"sqlite+aiosqlite:///{(tmp_path / 'store' / 'tasks.db').as_posix()}",
        store_key="test-key",
        log_level="INFO",
        log_dir=tmp_path / "logs",
    )


@pytest.fixture
def app(settings: Settings) -> FastAPI:
    return create_app(settings)


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    """Test client with startup (table creation) and shutdown run."""
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_task(client: TestClient) -> Callable[..., dict[str, Any]]:
    """Create a task through the API and return the stored record."""

    def _make(**fields: Any) -> dict[str, Any]:
        body = {"title": "Task", "author": "Ada", **fields}
        response = client.post("/tasks", json=body)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _make


@pytest.fixture
def anyio_backend() -> str:
    """The SQLAlchemy asyncio / aiosqlite stack runs on asyncio only."""
    return "asyncio"
