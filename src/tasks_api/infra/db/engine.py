from __future__ import annotations
from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, async_sessionmaker, AsyncSession
from pathlib import Path


def make_store_url(store_url: str, store_key: str) -> URL:
    url = make_url(store_url)
    if url.get_backend_name() == "sqlite":
        # file-backed store: no credentials, but the directory must exist
        if url.database and url.database != ":memory:":
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
        return url
    return url.set(password=store_key)


def make_engine(url: URL) -> AsyncEngine:
    return create_async_engine(url)


def make_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)
