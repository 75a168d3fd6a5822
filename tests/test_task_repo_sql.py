"""Tests for the SQL task repository."""

from pathlib import Path

import pytest

from tasks_api.domain.task_models import TaskCreate
from tasks_api.infra.db.engine import make_engine, make_sessionmaker, make_store_url
from tasks_api.infra.db.task_repo_sql import SQLTaskRepo


@pytest.fixture
async def repo(tmp_path: Path):
    engine = make_engine(make_store_url(f"sqlite+aiosqlite:///{(tmp_path / 'repo.db').as_posix()}", "k"))
    yield SQLTaskRepo(make_sessionmaker(engine))
    await engine.dispose()


@pytest.mark.anyio
async def test_create_schema_is_idempotent(repo: SQLTaskRepo) -> None:
    await repo.create_schema()
    created = await repo.create(TaskCreate(title="Schema", author="Ada"))

    # a second run keeps existing rows
    await repo.create_schema()
    assert await repo.get(created.id) == created
    tasks, total = await repo.page(0, 10)
    assert total == 1
    assert [t.id for t in tasks] == [created.id]


@pytest.mark.anyio
async def test_page_past_the_end_is_empty(repo: SQLTaskRepo) -> None:
    await repo.create_schema()
    await repo.create(TaskCreate(title="Only", author="Ada"))
    tasks, total = await repo.page(2**62, 10)
    assert tasks == []
    assert total == 1
