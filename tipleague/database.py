"""Database handle: engine, sessions and bulk-write helpers."""

from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Request
from sqlalchemy import insert, or_
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from tipleague.config import Settings


class Base(DeclarativeBase):
    """Declarative base for all models."""


class Store:
    """Explicitly constructed handle over one engine and its session factory.

    The settlement batch builds one per invocation and disposes it at the
    end; the API builds one per process lifespan.
    """

    def __init__(self, database_url: str, *, echo: bool = False):
        self.engine: AsyncEngine = create_async_engine(database_url, echo=echo, future=True)
        self.session_maker: async_sessionmaker[AsyncSession] = async_sessionmaker(
            bind=self.engine,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Store":
        return cls(settings.async_database_url, echo=settings.debug)

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        async with self.session_maker() as session:
            yield session

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """Session with one transaction, committed on exit, rolled back on error."""
        async with self.session_maker() as session:
            async with session.begin():
                yield session

    def upsert_statement(self, model: Any):
        """Dialect-specific INSERT supporting ON CONFLICT."""
        if self.dialect_name == "postgresql":
            return postgresql.insert(model)
        if self.dialect_name == "sqlite":
            return sqlite.insert(model)
        raise NotImplementedError(f"Upsert not supported on {self.dialect_name}")

    async def upsert(
        self,
        session: AsyncSession,
        model: Any,
        values: dict[str, Any],
        index_elements: Sequence[str],
        update_columns: Sequence[str] | None = None,
        compare_columns: Sequence[str] | None = None,
    ) -> int:
        """Insert a row, or update it in place when the key already exists.

        With ``compare_columns`` the update only fires when at least one of
        those columns differs from the stored row, so replaying an identical
        payload leaves the row untouched. Returns the affected row count.
        """
        stmt = self.upsert_statement(model).values(**values)
        if update_columns is None:
            update_columns = [c for c in values if c not in index_elements]
        where = None
        if compare_columns:
            table = model.__table__
            where = or_(*(table.c[c].is_distinct_from(stmt.excluded[c]) for c in compare_columns))
        stmt = stmt.on_conflict_do_update(
            index_elements=list(index_elements),
            set_={c: stmt.excluded[c] for c in update_columns},
            where=where,
        )
        result = await session.execute(stmt)
        return result.rowcount or 0

    async def bulk_insert(
        self,
        session: AsyncSession,
        model: Any,
        columns: Sequence[str],
        rows: Sequence[Sequence[Any]],
    ) -> int:
        """Insert many rows given as tuples in ``columns`` order."""
        if not rows:
            return 0
        width = len(columns)
        params = []
        for row in rows:
            if len(row) != width:
                raise ValueError(f"Row {row!r} does not match columns {list(columns)}")
            params.append(dict(zip(columns, row)))
        await session.execute(insert(model), params)
        return len(params)

    async def create_all(self) -> None:
        """Create every table (tests and local development; production uses Alembic)."""
        import tipleague.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()


def get_store(request: Request) -> Store:
    """FastAPI dependency returning the lifespan-scoped store."""
    return request.app.state.store


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """FastAPI dependency yielding a session."""
    async with get_store(request).session() as session:
        yield session
