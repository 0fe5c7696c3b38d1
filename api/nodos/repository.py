"""
Nodos persistence (raw SQL): nodes and node types.
"""

from __future__ import annotations

from core.db import Database

_NODE_SELECT = """
    SELECT n.id, n.descripcion, n.tipo,
           nt.descripcion AS tipo_descripcion,
           nu.latitud, nu.longitud, nu.comuna
    FROM nodo n
    LEFT JOIN nodo_tipo nt ON n.tipo = nt.tipo
    LEFT JOIN LATERAL (
      SELECT latitud, longitud, comuna
      FROM nodo_ubicacion
      WHERE nodo_id = n.id
      ORDER BY fecha DESC
      LIMIT 1
    ) nu ON true
"""


async def list_nodes(db: Database) -> list[dict]:
    return await db.fetch_all(_NODE_SELECT + " ORDER BY n.id ASC")


async def get_node(db: Database, node_id: int) -> dict | None:
    return await db.fetch_one(_NODE_SELECT + " WHERE n.id = $1", node_id)


async def node_exists(db: Database, node_id: int) -> bool:
    row = await db.fetch_one("SELECT 1 AS ok FROM nodo WHERE id = $1", node_id)
    return row is not None


async def create_node(db: Database, *, descripcion: str, tipo: int) -> int:
    node_id = await db.fetch_val(
        """
        INSERT INTO nodo (descripcion, tipo)
        VALUES ($1, $2)
        RETURNING id
        """,
        descripcion,
        tipo,
    )
    if node_id is None:
        raise RuntimeError("Failed to create node.")
    return int(node_id)


async def update_node(db: Database, node_id: int, *, descripcion: str, tipo: int) -> int:
    return await db.execute(
        """
        UPDATE nodo
        SET descripcion = $1, tipo = $2
        WHERE id = $3
        """,
        descripcion,
        tipo,
        node_id,
    )


async def count_node_messages(db: Database, node_id: int) -> int:
    count = await db.fetch_val("SELECT count(*) FROM mensaje WHERE nodo_id = $1", node_id)
    return int(count or 0)


async def delete_node_links(db: Database, node_id: int) -> int:
    return await db.execute("DELETE FROM nodo_colmena WHERE nodo_id = $1", node_id)


async def delete_node_locations(db: Database, node_id: int) -> int:
    return await db.execute("DELETE FROM nodo_ubicacion WHERE nodo_id = $1", node_id)


async def delete_node(db: Database, node_id: int) -> int:
    return await db.execute("DELETE FROM nodo WHERE id = $1", node_id)


async def list_node_types(db: Database) -> list[dict]:
    return await db.fetch_all(
        """
        SELECT tipo, descripcion
        FROM nodo_tipo
        ORDER BY tipo ASC
        """
    )


async def get_node_type(db: Database, tipo: int) -> dict | None:
    return await db.fetch_one("SELECT tipo, descripcion FROM nodo_tipo WHERE tipo = $1", tipo)


async def node_type_exists(db: Database, tipo: int) -> bool:
    return await get_node_type(db, tipo) is not None


async def create_node_type(db: Database, *, descripcion: str) -> int:
    tipo = await db.fetch_val(
        """
        INSERT INTO nodo_tipo (descripcion)
        VALUES ($1)
        RETURNING tipo
        """,
        descripcion,
    )
    if tipo is None:
        raise RuntimeError("Failed to create node type.")
    return int(tipo)


async def update_node_type(db: Database, tipo: int, *, descripcion: str) -> int:
    return await db.execute(
        """
        UPDATE nodo_tipo
        SET descripcion = $1
        WHERE tipo = $2
        """,
        descripcion,
        tipo,
    )


async def count_nodes_of_type(db: Database, tipo: int) -> int:
    count = await db.fetch_val("SELECT count(*) FROM nodo WHERE tipo = $1", tipo)
    return int(count or 0)


async def delete_node_type(db: Database, tipo: int) -> int:
    return await db.execute("DELETE FROM nodo_tipo WHERE tipo = $1", tipo)
