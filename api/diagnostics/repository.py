"""
Schema introspection through information_schema.

Table names come back from the catalog and are only ever bound as
parameters, never formatted into SQL.
"""

from __future__ import annotations

from core.db import Database


async def list_tables(db: Database) -> list[str]:
    rows = await db.fetch_all(
        """
        SELECT table_name
        FROM information_schema.tables
        WHERE table_schema = current_schema()
          AND table_type = 'BASE TABLE'
        ORDER BY table_name
        """
    )
    return [str(row["table_name"]) for row in rows]


async def list_columns(db: Database, table_name: str) -> list[dict]:
    return await db.fetch_all(
        """
        SELECT column_name, data_type, is_nullable, column_default
        FROM information_schema.columns
        WHERE table_schema = current_schema()
          AND table_name = $1
        ORDER BY ordinal_position
        """,
        table_name,
    )
