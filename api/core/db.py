"""
Async database access (raw SQL) using asyncpg.

`Database` owns a connection pool. It is created in the FastAPI lifespan
(see `api/main.py`), stored on `app.state.db` and handed to routes through the
`get_db` dependency. Nothing here is process-global.

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...
- caller-supplied values are always bound, never formatted into SQL text

Driver errors are translated into the API error taxonomy:
- integrity violations (FK, unique, not null) -> ReferentialConstraint
- everything else -> PersistenceError
"""

from __future__ import annotations

import asyncio
import logging
import time
from contextlib import asynccontextmanager, contextmanager
from typing import Any, AsyncIterator, Iterator

import asyncpg
from fastapi import FastAPI, Request

from .config import Settings
from .errors import PersistenceError, ReferentialConstraint, Unreachable

logger = logging.getLogger(__name__)


def _record_to_dict(record: asyncpg.Record) -> dict[str, Any]:
    return dict(record)


def affected_rows(status: str) -> int:
    """
    Parse asyncpg's command status ("DELETE 3", "INSERT 0 1", "UPDATE 0").
    """
    parts = (status or "").split()
    if not parts:
        return 0
    try:
        return int(parts[-1])
    except ValueError:
        return 0


@contextmanager
def translate_errors() -> Iterator[None]:
    try:
        yield
    except asyncpg.IntegrityConstraintViolationError as exc:
        logger.warning("integrity_violation constraint=%s", getattr(exc, "constraint_name", None))
        raise ReferentialConstraint(details=str(exc)) from exc
    except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as exc:
        raise PersistenceError(details=str(exc)) from exc


class Database:
    """
    Thin gateway over an asyncpg pool (or a single connection inside a
    transaction). Both expose fetchrow/fetch/fetchval/execute, so the same
    methods work in either mode.
    """

    def __init__(self, executor: Any, *, pool: asyncpg.Pool | None = None) -> None:
        self._executor = executor
        self._pool = pool

    @classmethod
    async def connect(cls, settings: Settings) -> Database:
        ssl: Any = "require" if settings.db_ssl in {"require", "verify-ca", "verify-full"} else False
        pool = await asyncpg.create_pool(
            dsn=settings.database_url,
            min_size=settings.db_pool_min,
            max_size=settings.db_pool_max,
            command_timeout=settings.db_command_timeout,
            ssl=ssl,
        )
        return cls(pool, pool=pool)

    async def close(self) -> None:
        if self._pool is None:
            return None
        # Waits for in-flight queries to release their connections.
        await self._pool.close()
        self._pool = None

    async def fetch_one(self, sql: str, *args: Any) -> dict[str, Any] | None:
        """
        Run a query and return a single row as a dict (or None).
        """
        with translate_errors():
            row = await self._executor.fetchrow(sql, *args)
        return _record_to_dict(row) if row is not None else None

    async def fetch_all(self, sql: str, *args: Any) -> list[dict[str, Any]]:
        """
        Run a query and return all rows as a list of dicts.
        """
        with translate_errors():
            rows = await self._executor.fetch(sql, *args)
        return [_record_to_dict(r) for r in rows]

    async def fetch_val(self, sql: str, *args: Any) -> Any:
        """
        Run a query and return the first column of the first row.
        Used for `INSERT ... RETURNING id` and `SELECT count(*)`.
        """
        with translate_errors():
            return await self._executor.fetchval(sql, *args)

    async def execute(self, sql: str, *args: Any) -> int:
        """
        Run a statement (INSERT/UPDATE/DELETE) and return the affected row count.
        """
        with translate_errors():
            status = await self._executor.execute(sql, *args)
        return affected_rows(status)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[Database]:
        """
        Run several statements atomically. Any exception rolls everything back.
        Nested calls reuse the outer transaction's connection.
        """
        if self._pool is None:
            with translate_errors():
                async with self._executor.transaction():
                    yield self
            return

        with translate_errors():
            async with self._pool.acquire() as conn:  # type: asyncpg.Connection
                async with conn.transaction():
                    yield Database(conn)


CONNECT_ERRORS = (OSError, asyncio.TimeoutError, asyncpg.PostgresError, asyncpg.InterfaceError)


def init_database_state(app: FastAPI) -> None:
    app.state.db = None
    app.state.db_lock = asyncio.Lock()
    app.state.db_retry_at = 0.0


async def ensure_database(app: FastAPI) -> Database:
    """
    Return the app's pool, opening it first when the app is running degraded.

    Reconnects are serialized by `app.state.db_lock` and attempted at most
    once per `db_retry_interval` seconds; in between, callers get Unreachable.
    """
    db = getattr(app.state, "db", None)
    if db is not None:
        return db

    settings: Settings = app.state.settings
    async with app.state.db_lock:
        if app.state.db is not None:
            return app.state.db
        if time.monotonic() < app.state.db_retry_at:
            raise Unreachable()
        try:
            db = await Database.connect(settings)
        except CONNECT_ERRORS as exc:
            app.state.db_retry_at = time.monotonic() + settings.db_retry_interval
            logger.warning("database_unreachable error=%s retry_in=%ss", exc, settings.db_retry_interval)
            raise Unreachable(details=str(exc)) from exc
        app.state.db = db
        logger.info("database_connected pool_max=%s", settings.db_pool_max)
        return db


async def get_db(request: Request) -> Database:
    return await ensure_database(request.app)
