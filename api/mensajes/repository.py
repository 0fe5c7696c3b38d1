"""
Mensajes persistence (raw SQL).
"""

from __future__ import annotations

from core.db import Database
from core.filters import Page, Predicate, like_pattern

from . import schemas

RECENT_LIMIT = 100

_MESSAGE_SELECT = """
    SELECT m.id, m.nodo_id, m.topico, m.payload, m.fecha,
           n.descripcion AS nodo_descripcion
    FROM mensaje m
    LEFT JOIN nodo n ON m.nodo_id = n.id
"""


def message_predicate(filters: schemas.MessageFilters) -> Predicate:
    where = Predicate()
    where.add_if(filters.nodo_id, "m.nodo_id = {}")
    if filters.topico:
        where.add("m.topico ILIKE {}", like_pattern(filters.topico))
    where.add_if(filters.fecha_inicio, "m.fecha >= {}::date")
    # Inclusive end date: everything before the next midnight.
    where.add_if(filters.fecha_fin, "m.fecha < ({}::date + 1)")
    return where


async def list_messages(db: Database, where: Predicate, page: Page) -> list[dict]:
    return await db.fetch_all(
        f"""
        {_MESSAGE_SELECT}
        WHERE {where.sql()}
        ORDER BY m.fecha DESC, m.id DESC
        LIMIT {where.next_placeholder()}
        OFFSET {where.next_placeholder(1)}
        """,
        *where.params,
        page.limit,
        page.offset,
    )


async def count_messages(db: Database, where: Predicate) -> int:
    total = await db.fetch_val(
        f"""
        SELECT count(*)
        FROM mensaje m
        WHERE {where.sql()}
        """,
        *where.params,
    )
    return int(total or 0)


async def list_recent_messages(db: Database, *, hours: int) -> list[dict]:
    return await db.fetch_all(
        f"""
        {_MESSAGE_SELECT}
        WHERE m.fecha >= now() - make_interval(hours => $1)
        ORDER BY m.fecha DESC
        LIMIT $2
        """,
        hours,
        RECENT_LIMIT,
    )


async def get_message(db: Database, message_id: int) -> dict | None:
    return await db.fetch_one(_MESSAGE_SELECT + " WHERE m.id = $1", message_id)


async def message_exists(db: Database, message_id: int) -> bool:
    row = await db.fetch_one("SELECT 1 AS ok FROM mensaje WHERE id = $1", message_id)
    return row is not None


async def create_message(db: Database, *, nodo_id: int, topico: str, payload: str) -> int:
    message_id = await db.fetch_val(
        """
        INSERT INTO mensaje (nodo_id, topico, payload)
        VALUES ($1, $2, $3)
        RETURNING id
        """,
        nodo_id,
        topico,
        payload,
    )
    if message_id is None:
        raise RuntimeError("Failed to create message.")
    return int(message_id)


async def update_message(db: Database, message_id: int, *, nodo_id: int, topico: str, payload: str) -> int:
    return await db.execute(
        """
        UPDATE mensaje
        SET nodo_id = $1, topico = $2, payload = $3
        WHERE id = $4
        """,
        nodo_id,
        topico,
        payload,
        message_id,
    )


async def delete_message(db: Database, message_id: int) -> int:
    return await db.execute("DELETE FROM mensaje WHERE id = $1", message_id)
