"""
Usuarios persistence helpers (raw SQL).
"""

from __future__ import annotations

from core.db import Database

_USER_COLUMNS = """
    u.id, u.nombre, u.apellido, u.rol,
    r.descripcion AS rol_nombre
"""


async def list_users(db: Database) -> list[dict]:
    return await db.fetch_all(
        f"""
        SELECT {_USER_COLUMNS}
        FROM usuario u
        LEFT JOIN rol r ON u.rol = r.rol
        ORDER BY u.id ASC
        """
    )


async def get_user(db: Database, user_id: int) -> dict | None:
    return await db.fetch_one(
        f"""
        SELECT {_USER_COLUMNS}
        FROM usuario u
        LEFT JOIN rol r ON u.rol = r.rol
        WHERE u.id = $1
        """,
        user_id,
    )


async def get_user_for_login(db: Database, nombre: str) -> dict | None:
    """
    Includes the stored credential; never return this row to a client.
    """
    return await db.fetch_one(
        """
        SELECT u.id, u.nombre, u.apellido, u.clave, u.rol,
               r.descripcion AS rol_nombre
        FROM usuario u
        LEFT JOIN rol r ON u.rol = r.rol
        WHERE u.nombre = $1
        ORDER BY u.id ASC
        LIMIT 1
        """,
        nombre,
    )


async def user_exists(db: Database, user_id: int) -> bool:
    row = await db.fetch_one("SELECT 1 AS ok FROM usuario WHERE id = $1", user_id)
    return row is not None


async def role_exists(db: Database, rol: int) -> bool:
    row = await db.fetch_one("SELECT 1 AS ok FROM rol WHERE rol = $1", rol)
    return row is not None


async def create_user(db: Database, *, nombre: str, apellido: str, clave_hash: str, rol: int) -> int:
    user_id = await db.fetch_val(
        """
        INSERT INTO usuario (nombre, apellido, clave, rol)
        VALUES ($1, $2, $3, $4)
        RETURNING id
        """,
        nombre,
        apellido,
        clave_hash,
        rol,
    )
    if user_id is None:
        raise RuntimeError("Failed to create user.")
    return int(user_id)


async def update_user(
    db: Database,
    user_id: int,
    *,
    nombre: str,
    apellido: str,
    rol: int,
    clave_hash: str | None = None,
) -> int:
    """
    Two statement shapes: with a new credential, or keeping the stored one.
    """
    if clave_hash is not None:
        return await db.execute(
            """
            UPDATE usuario
            SET nombre = $1, apellido = $2, clave = $3, rol = $4
            WHERE id = $5
            """,
            nombre,
            apellido,
            clave_hash,
            rol,
            user_id,
        )
    return await db.execute(
        """
        UPDATE usuario
        SET nombre = $1, apellido = $2, rol = $3
        WHERE id = $4
        """,
        nombre,
        apellido,
        rol,
        user_id,
    )


async def set_user_credential(db: Database, user_id: int, *, clave_hash: str) -> None:
    await db.execute("UPDATE usuario SET clave = $1 WHERE id = $2", clave_hash, user_id)


async def count_owned_hives(db: Database, user_id: int) -> int:
    count = await db.fetch_val("SELECT count(*) FROM colmena WHERE dueno = $1", user_id)
    return int(count or 0)


async def delete_user(db: Database, user_id: int) -> int:
    return await db.execute("DELETE FROM usuario WHERE id = $1", user_id)


async def list_roles(db: Database) -> list[dict]:
    return await db.fetch_all(
        """
        SELECT rol AS id, descripcion
        FROM rol
        ORDER BY rol
        """
    )


async def list_users_for_select(db: Database) -> list[dict]:
    return await db.fetch_all("SELECT id, nombre, apellido FROM usuario ORDER BY nombre")
