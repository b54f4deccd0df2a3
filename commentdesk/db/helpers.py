"""
Query helpers for the record store.

Every helper borrows a pooled connection unless one is passed in, and raises
DatabaseError for driver or pool failures. Repositories translate that into
StoreUnavailable.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import psycopg

from commentdesk.db.pool import record_store
from commentdesk.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class DatabaseError(Exception):
    """A query against the record store failed."""

    def __init__(self, message: str, operation: str = "unknown"):
        super().__init__(message)
        self.operation = operation


@asynccontextmanager
async def _borrow(
    operation: str, query: str, connection: psycopg.AsyncConnection | None
) -> AsyncIterator[psycopg.AsyncConnection]:
    try:
        if connection is not None:
            yield connection
        else:
            async with record_store.connection() as conn:
                yield conn
    except (psycopg.Error, RuntimeError) as e:
        logger.error("Record store query failed", operation=operation, query=query[:100], error=str(e))
        raise DatabaseError(f"{operation} failed: {e}", operation=operation) from e


async def fetch_one(
    query: str, params: tuple = (), *, connection: psycopg.AsyncConnection | None = None
) -> dict[str, Any] | None:
    """First row as a dict, or None."""
    async with _borrow("fetch_one", query, connection) as conn:
        async with conn.cursor() as cur:
            await cur.execute(query, params)
            return await cur.fetchone()


async def fetch_all(
    query: str, params: tuple = (), *, connection: psycopg.AsyncConnection | None = None
) -> list[dict[str, Any]]:
    async with _borrow("fetch_all", query, connection) as conn:
        async with conn.cursor() as cur:
            await cur.execute(query, params)
            return await cur.fetchall()


async def fetch_val(
    query: str, params: tuple = (), *, connection: psycopg.AsyncConnection | None = None
) -> Any:
    """First column of the first row, or None."""
    row = await fetch_one(query, params, connection=connection)
    return next(iter(row.values())) if row else None


async def execute_query(
    query: str, params: tuple = (), *, connection: psycopg.AsyncConnection | None = None
) -> int:
    """Run a write and return the affected row count."""
    async with _borrow("execute", query, connection) as conn:
        cursor = await conn.execute(query, params)
        return cursor.rowcount


async def execute_transaction(statements: list[tuple[str, tuple]]) -> int:
    """
    Run ``(query, params)`` pairs atomically.

    Returns the number of statements executed. Nothing is committed if any
    statement fails.
    """
    try:
        async with record_store.transaction() as conn:
            for query, params in statements:
                await conn.execute(query, params)
    except (psycopg.Error, RuntimeError) as e:
        logger.error("Record store transaction failed", statements=len(statements), error=str(e))
        raise DatabaseError(f"transaction failed: {e}", operation="transaction") from e

    logger.debug("Record store transaction committed", statements=len(statements))
    return len(statements)
