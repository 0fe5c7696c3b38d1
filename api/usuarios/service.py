"""
Usuarios business logic: login, user CRUD, roles.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from core.config import Settings
from core.db import Database
from core.errors import HasDependents, InvalidCredentials, InvalidReference, NotFound

from . import repository, schemas, security, validators

logger = logging.getLogger(__name__)

USER_NOT_FOUND = "Usuario no encontrado"
DEFAULT_ROLE_NAME = "Usuario"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_user_response(row: dict, *, now: datetime | None = None) -> dict:
    """
    Shape a user row for the frontend.

    The schema has no email, phone or registration date; the frontend expects
    them anyway, so email mirrors nombre and the rest are placeholders.
    """
    return {
        "id": int(row["id"]),
        "nombre": row["nombre"],
        "apellido": row["apellido"],
        "email": row["nombre"],
        "telefono": "",
        "fecha_registro": (now or _utc_now()).isoformat(),
        "rol": row.get("rol"),
        "rol_nombre": row.get("rol_nombre") or DEFAULT_ROLE_NAME,
    }


async def login(db: Database, settings: Settings, payload: schemas.LoginRequest) -> dict:
    identifier, password = validators.validate_login(payload)

    user_row = await repository.get_user_for_login(db, identifier)
    stored = str((user_row or {}).get("clave") or "")
    # Same answer for unknown user and wrong password.
    if user_row is None or not security.verify_password(password, stored):
        logger.info("login_failed")
        raise InvalidCredentials()

    user_id = int(user_row["id"])
    if security.needs_rehash(stored):
        if security.fits_bcrypt(password):
            await repository.set_user_credential(db, user_id, clave_hash=security.hash_password(password))
            logger.info("credential_upgraded user_id=%s", user_id)
        else:
            logger.warning("credential_upgrade_skipped user_id=%s reason=too_long", user_id)

    token = security.build_access_token(settings, user_id=user_id, nombre=str(user_row["nombre"]))
    logger.info("login_ok user_id=%s", user_id)
    return {
        "data": {
            "token": token,
            "usuario": {
                "id": user_id,
                "nombre": user_row["nombre"],
                "apellido": user_row["apellido"],
                "email": user_row["nombre"],
                "rol_nombre": user_row.get("rol_nombre") or DEFAULT_ROLE_NAME,
            },
        },
        "message": "Login exitoso",
    }


async def list_users(db: Database) -> list[dict]:
    rows = await repository.list_users(db)
    now = _utc_now()
    return [to_user_response(row, now=now) for row in rows]


async def get_user(db: Database, user_id: int) -> dict:
    row = await repository.get_user(db, user_id)
    if row is None:
        raise NotFound(USER_NOT_FOUND)
    return to_user_response(row)


async def create_user(db: Database, settings: Settings, payload: schemas.UserCreateRequest) -> dict:
    new_user = validators.validate_new_user(payload)
    rol = validators.resolve_role(
        new_user.rol,
        role_exists=await repository.role_exists(db, new_user.rol),
        policy=settings.invalid_role_policy,
    )

    user_id = await repository.create_user(
        db,
        nombre=new_user.nombre,
        apellido=new_user.apellido,
        clave_hash=security.hash_password(new_user.clave),
        rol=rol,
    )
    logger.info("user_created id=%s rol=%s", user_id, rol)

    row = await repository.get_user(db, user_id)
    if row is None:
        raise NotFound(USER_NOT_FOUND)
    return {
        "id": user_id,
        "message": "Usuario creado exitosamente",
        "usuario": to_user_response(row),
    }


async def update_user(db: Database, user_id: int, payload: schemas.UserUpdateRequest) -> dict:
    if not await repository.user_exists(db, user_id):
        raise NotFound(USER_NOT_FOUND)

    changes = validators.validate_user_changes(payload)
    if not await repository.role_exists(db, changes.rol):
        raise InvalidReference("El rol especificado no existe")

    clave_hash = security.hash_password(changes.clave) if changes.clave else None
    updated = await repository.update_user(
        db,
        user_id,
        nombre=changes.nombre,
        apellido=changes.apellido,
        rol=changes.rol,
        clave_hash=clave_hash,
    )
    if updated == 0:
        raise NotFound(USER_NOT_FOUND)
    logger.info("user_updated id=%s credential_changed=%s", user_id, clave_hash is not None)

    row = await repository.get_user(db, user_id)
    if row is None:
        raise NotFound(USER_NOT_FOUND)
    return {
        "message": "Usuario actualizado correctamente",
        "usuario": to_user_response(row),
    }


async def delete_user(db: Database, user_id: int) -> dict:
    async with db.transaction() as tx:
        row = await repository.get_user(tx, user_id)
        if row is None:
            raise NotFound(USER_NOT_FOUND)

        hives = await repository.count_owned_hives(tx, user_id)
        if hives > 0:
            raise HasDependents(
                f"No se puede eliminar el usuario porque tiene {hives} colmena(s) asociada(s). "
                "Primero transfiere o elimina las colmenas.",
                count=hives,
            )
        await repository.delete_user(tx, user_id)

    logger.info("user_deleted id=%s", user_id)
    return {
        "message": f'Usuario "{row["nombre"]} {row["apellido"]}" eliminado correctamente',
        "id": user_id,
    }


async def list_roles(db: Database) -> list[dict]:
    return await repository.list_roles(db)


async def list_users_for_select(db: Database) -> list[dict]:
    return await repository.list_users_for_select(db)
