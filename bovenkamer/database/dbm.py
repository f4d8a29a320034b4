"""
Database manager.

SQLite (aiosqlite) for a single organizer laptop, PostgreSQL (asyncpg) when the
app runs against the hosted database. Both go through the same async engine.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from sqlalchemy import event
from sqlalchemy.engine import Result
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.sql.elements import ClauseElement, TextClause

from bovenkamer.config.db_url import sanitize_url_for_log

logger = logging.getLogger(__name__)


def _set_sqlite_pragma(dbapi_connection: Any, connection_record: Any) -> None:
    # per-connection pragmas, so run them on every connect
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
    finally:
        cursor.close()


class DBM:
    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.engine: AsyncEngine = create_async_engine(url, echo=echo, future=True)
        if self.engine.dialect.name == "sqlite":
            event.listen(self.engine.sync_engine, "connect", _set_sqlite_pragma)

        self.session_maker: async_sessionmaker[AsyncSession] = async_sessionmaker(
            bind=self.engine,
            expire_on_commit=False,
            autocommit=False,
            autoflush=False,
        )
        logger.debug({"dbm": {"event": "engine_created", "url": sanitize_url_for_log(url)}})

    @classmethod
    def from_settings(cls, settings: Any) -> "DBM":
        db = settings.database
        return cls(db.resolved_url(), echo=db.echo)

    @property
    def dialect(self) -> str:
        return self.engine.dialect.name

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        async with self.session_maker() as session:
            yield session

    async def read(self, query: Any, params: dict | None = None) -> list[Any]:
        """Execute a read-only statement and return all rows."""
        if isinstance(query, str):
            raise TypeError("Raw SQL strings are disallowed. Use sqlalchemy.text().")
        if not isinstance(query, (TextClause, ClauseElement)):
            raise TypeError("Query must be a SQLAlchemy TextClause or ClauseElement.")

        async with self.session() as session:
            result: Result = await session.execute(query, params or {})
            return result.mappings().all()

    async def write(self, query: Any, params: dict | None = None) -> int:
        """Execute a write statement inside a transaction and return row count."""
        if isinstance(query, str):
            raise TypeError("Raw SQL strings are disallowed. Use sqlalchemy.text().")
        if not isinstance(query, (TextClause, ClauseElement)):
            raise TypeError("Query must be a SQLAlchemy TextClause or ClauseElement.")
        if not params:
            raise ValueError("Parameterized writes are required. Provide a params mapping.")

        async with self.session() as session:
            async with session.begin():
                result: Result = await session.execute(query, params)
                return result.rowcount or 0

    async def dispose(self) -> None:
        await self.engine.dispose()


__all__ = ["DBM"]
