from __future__ import annotations
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

from sqlalchemy import String, Text, DateTime, delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.ext.asyncio import AsyncSession

from tasks_api.domain.errors import StoreConflict, StoreError
from tasks_api.domain.task_models import Task, TaskCreate, new_task_id
from tasks_api.domain.task_query import SortSpec, TaskFilters, TextSearch


class Base(DeclarativeBase):
    pass


class TaskRow(Base):
    __tablename__ = "Tasks"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    author: Mapped[str] = mapped_column(Text, nullable=False)
    priority: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    due_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    start_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    def to_domain(self) -> Task:
        return Task.model_validate(self)


_COLUMNS = {
    "title": TaskRow.title,
    "author": TaskRow.author,
    "priority": TaskRow.priority,
    "description": TaskRow.description,
    "due_date": TaskRow.due_date,
    "start_date": TaskRow.start_date,
    "created_at": TaskRow.created_at,
    "updated_at": TaskRow.updated_at,
}


def _error_message(exc: SQLAlchemyError) -> str:
    orig = getattr(exc, "orig", None)
    return str(orig) if orig is not None else str(exc)


def _is_unique_violation(exc: IntegrityError) -> bool:
    orig = exc.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    return code == "23505" or "UNIQUE constraint failed" in str(orig)


def _conditions(filters: TaskFilters, search: Optional[TextSearch]) -> List[Any]:
    conds: List[Any] = []
    if search is not None:
        # any selected field may match; wildcards in the term are literal
        conds.append(or_(*(
            _COLUMNS[name].icontains(search.term, autoescape=True) for name in search.fields
        )))
    if filters.priorities:
        conds.append(TaskRow.priority.in_(filters.priorities))
    if filters.author:
        conds.append(TaskRow.author.icontains(filters.author, autoescape=True))
    for col, rng in ((TaskRow.start_date, filters.start_date), (TaskRow.due_date, filters.due_date)):
        if rng.gte is not None:
            conds.append(col >= rng.gte)
        if rng.lte is not None:
            conds.append(col <= rng.lte)
    return conds


def _ordering(sort: SortSpec) -> List[Any]:
    col = _COLUMNS[sort.field]
    key = col.asc() if sort.ascending else col.desc()
    key = key.nulls_last() if sort.nulls_last else key.nulls_first()
    tiebreak = TaskRow.id.asc() if sort.ascending else TaskRow.id.desc()
    return [key, tiebreak]


class SQLTaskRepo:
    def __init__(self, sessionmaker):
        self.sessionmaker = sessionmaker

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        try:
            async with self.sessionmaker() as session:
                yield session
        except IntegrityError as e:
            if _is_unique_violation(e):
                raise StoreConflict(_error_message(e)) from e
            raise StoreError(_error_message(e)) from e
        except SQLAlchemyError as e:
            raise StoreError(_error_message(e)) from e

    async def create_schema(self) -> None:
        """Create the Tasks table if it is missing."""
        async with self._session() as session:
            conn = await session.connection()
            await conn.run_sync(Base.metadata.create_all)
            await session.commit()

    async def create(self, data: TaskCreate) -> Task:
        now = datetime.now(timezone.utc)
        row = TaskRow(id=new_task_id(), created_at=now, updated_at=now, **data.values())
        async with self._session() as session:
            session.add(row)
            await session.commit()
            # re-read so the caller sees what the store keeps
            await session.refresh(row)
            return row.to_domain()

    async def get(self, task_id: str) -> Optional[Task]:
        async with self._session() as session:
            row = await session.get(TaskRow, task_id)
            return row.to_domain() if row else None

    async def page(self, offset: int, limit: int) -> Tuple[List[Task], int]:
        stmt = (
            select(TaskRow)
            .order_by(TaskRow.created_at.desc(), TaskRow.id.desc())
            .offset(offset)
            .limit(limit)
        )
        async with self._session() as session:
            total = await session.scalar(select(func.count()).select_from(TaskRow))
            total = total or 0
            if offset >= total:
                return [], total
            rows = (await session.scalars(stmt)).all()
            return [r.to_domain() for r in rows], total

    async def query(
        self,
        filters: TaskFilters,
        sort: SortSpec,
        offset: int,
        limit: int,
        search: Optional[TextSearch] = None,
    ) -> Tuple[List[Task], int]:
        conds = _conditions(filters, search)
        count_stmt = select(func.count()).select_from(TaskRow).where(*conds)
        stmt = (
            select(TaskRow)
            .where(*conds)
            .order_by(*_ordering(sort))
            .offset(offset)
            .limit(limit)
        )
        async with self._session() as session:
            total = await session.scalar(count_stmt)
            total = total or 0
            if offset >= total:
                return [], total
            rows = (await session.scalars(stmt)).all()
            return [r.to_domain() for r in rows], total

    async def update(self, task_id: str, changes: Dict[str, Any]) -> Optional[Task]:
        values = dict(changes)
        values["updated_at"] = datetime.now(timezone.utc)
        stmt = update(TaskRow).where(TaskRow.id == task_id).values(**values).returning(TaskRow)
        async with self._session() as session:
            row = (await session.scalars(stmt)).one_or_none()
            task = row.to_domain() if row else None
            await session.commit()
            return task

    async def delete(self, task_id: str) -> Optional[Task]:
        stmt = delete(TaskRow).where(TaskRow.id == task_id).returning(TaskRow)
        async with self._session() as session:
            row = (await session.scalars(stmt)).one_or_none()
            task = row.to_domain() if row else None
            await session.commit()
            return task
