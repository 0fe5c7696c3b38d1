"""
Colmenas persistence (raw SQL): hives, their location and node associations.
"""

from __future__ import annotations

from core.db import Database


async def list_hives(db: Database) -> list[dict]:
    return await db.fetch_all(
        """
        SELECT c.id, c.descripcion, c.dueno,
               u.nombre AS dueno_nombre, u.apellido AS dueno_apellido,
               cu.latitud, cu.longitud, cu.comuna,
               cu.descripcion AS ubicacion_descripcion
        FROM colmena c
        LEFT JOIN usuario u ON c.dueno = u.id
        LEFT JOIN colmena_ubicacion cu ON c.id = cu.colmena_id
        ORDER BY c.id ASC
        """
    )


async def get_hive(db: Database, hive_id: int) -> dict | None:
    return await db.fetch_one(
        """
        SELECT c.id, c.descripcion, c.dueno,
               u.nombre AS dueno_nombre, u.apellido AS dueno_apellido
        FROM colmena c
        LEFT JOIN usuario u ON c.dueno = u.id
        WHERE c.id = $1
        """,
        hive_id,
    )


async def hive_exists(db: Database, hive_id: int) -> bool:
    row = await db.fetch_one("SELECT 1 AS ok FROM colmena WHERE id = $1", hive_id)
    return row is not None


async def get_latest_location(db: Database, hive_id: int) -> dict | None:
    return await db.fetch_one(
        """
        SELECT latitud, longitud, descripcion AS ubicacion_descripcion, comuna
        FROM colmena_ubicacion
        WHERE colmena_id = $1
        ORDER BY fecha DESC
        LIMIT 1
        """,
        hive_id,
    )


async def list_locations(db: Database, hive_id: int) -> list[dict]:
    return await db.fetch_all(
        """
        SELECT id, latitud, longitud, descripcion, comuna, fecha
        FROM colmena_ubicacion
        WHERE colmena_id = $1
        ORDER BY fecha DESC
        """,
        hive_id,
    )


async def list_hive_nodes(db: Database, hive_id: int) -> list[dict]:
    return await db.fetch_all(
        """
        SELECT n.id, n.descripcion, n.tipo,
               nt.descripcion AS tipo_descripcion,
               nc.fecha AS fecha_asociacion
        FROM nodo_colmena nc
        JOIN nodo n ON nc.nodo_id = n.id
        LEFT JOIN nodo_tipo nt ON n.tipo = nt.tipo
        WHERE nc.colmena_id = $1
        ORDER BY nc.fecha DESC
        """,
        hive_id,
    )


async def create_hive(db: Database, *, descripcion: str, dueno: int) -> int:
    hive_id = await db.fetch_val(
        """
        INSERT INTO colmena (descripcion, dueno)
        VALUES ($1, $2)
        RETURNING id
        """,
        descripcion,
        dueno,
    )
    if hive_id is None:
        raise RuntimeError("Failed to create hive.")
    return int(hive_id)


async def update_hive(db: Database, hive_id: int, *, descripcion: str, dueno: int) -> int:
    return await db.execute(
        """
        UPDATE colmena
        SET descripcion = $1, dueno = $2
        WHERE id = $3
        """,
        descripcion,
        dueno,
        hive_id,
    )


async def delete_hive_nodes(db: Database, hive_id: int) -> int:
    return await db.execute("DELETE FROM nodo_colmena WHERE colmena_id = $1", hive_id)


async def delete_hive_locations(db: Database, hive_id: int) -> int:
    return await db.execute("DELETE FROM colmena_ubicacion WHERE colmena_id = $1", hive_id)


async def delete_hive(db: Database, hive_id: int) -> int:
    return await db.execute("DELETE FROM colmena WHERE id = $1", hive_id)


async def upsert_location(
    db: Database,
    hive_id: int,
    *,
    latitud: float,
    longitud: float,
    descripcion: str | None,
    comuna: str | None,
) -> dict:
    """
    One location row per hive (UNIQUE colmena_id); a second write replaces
    the values and refreshes `fecha`.
    """
    row = await db.fetch_one(
        """
        INSERT INTO colmena_ubicacion (colmena_id, latitud, longitud, descripcion, comuna)
        VALUES ($1, $2, $3, $4, $5)
        ON CONFLICT (colmena_id) DO UPDATE
        SET latitud = EXCLUDED.latitud,
            longitud = EXCLUDED.longitud,
            descripcion = EXCLUDED.descripcion,
            comuna = EXCLUDED.comuna,
            fecha = now()
        RETURNING id, colmena_id, latitud, longitud, descripcion, comuna, fecha,
                  (xmax = 0) AS inserted
        """,
        hive_id,
        latitud,
        longitud,
        descripcion,
        comuna,
    )
    if row is None:
        raise RuntimeError("Failed to upsert hive location.")
    return row


async def list_active_hives(db: Database) -> list[dict]:
    return await db.fetch_all(
        """
        SELECT id, 'Colmena #' || id AS nombre
        FROM colmena
        ORDER BY id
        """
    )


async def associate_node(db: Database, hive_id: int, nodo_id: int) -> bool:
    """
    Returns False when the association already existed.
    """
    inserted = await db.execute(
        """
        INSERT INTO nodo_colmena (colmena_id, nodo_id)
        VALUES ($1, $2)
        ON CONFLICT (colmena_id, nodo_id) DO NOTHING
        """,
        hive_id,
        nodo_id,
    )
    return inserted > 0


async def dissociate_node(db: Database, hive_id: int, nodo_id: int) -> int:
    return await db.execute(
        "DELETE FROM nodo_colmena WHERE colmena_id = $1 AND nodo_id = $2",
        hive_id,
        nodo_id,
    )
