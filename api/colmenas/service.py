"""
Colmenas business logic.

Scope:
- hive CRUD (owner must exist; delete cascades through associations/location)
- one current location per hive (upsert)
- node associations
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from core.db import Database
from core.errors import InvalidReference, NotFound
from nodos import repository as nodos_repository
from usuarios import repository as usuarios_repository

from . import repository, schemas, validators

logger = logging.getLogger(__name__)

HIVE_NOT_FOUND = "Colmena no encontrada"
DEFAULT_HIVE_TYPE = "Langstroth"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def hive_display_name(hive_id: int) -> str:
    return f"Colmena #{hive_id}"


def to_hive_list_item(row: dict, *, now: datetime | None = None) -> dict:
    """
    Shape a hive row for the frontend list.

    nombre, tipo, apiario_*, fecha_instalacion and activa have no column in
    the schema; they are synthesized here.
    """
    return {
        "id": int(row["id"]),
        "nombre": hive_display_name(int(row["id"])),
        "tipo": DEFAULT_HIVE_TYPE,
        "descripcion": row["descripcion"],
        "dueno": row["dueno"],
        "dueno_nombre": row.get("dueno_nombre"),
        "dueno_apellido": row.get("dueno_apellido"),
        "apiario_id": None,
        "apiario_nombre": row.get("comuna"),
        "fecha_instalacion": (now or _utc_now()).isoformat(),
        "activa": 1,
        "latitud": row.get("latitud"),
        "longitud": row.get("longitud"),
        "ubicacion": row.get("ubicacion_descripcion"),
        "comuna": row.get("comuna"),
        "ubicacion_descripcion": row.get("ubicacion_descripcion"),
    }


def to_hive_detail(hive: dict, location: dict | None, nodes: list[dict]) -> dict:
    return {**hive, **(location or {}), "nodos": nodes}


def to_location_response(row: dict) -> dict:
    return {
        "id": row["id"],
        "colmena_id": row["colmena_id"],
        "latitud": row["latitud"],
        "longitud": row["longitud"],
        "descripcion": row["descripcion"],
        "comuna": row["comuna"],
        "fecha": row["fecha"],
    }


async def _require_hive(db: Database, hive_id: int) -> None:
    if not await repository.hive_exists(db, hive_id):
        raise NotFound(HIVE_NOT_FOUND)


async def _require_owner(db: Database, dueno: int) -> None:
    if not await usuarios_repository.user_exists(db, dueno):
        raise InvalidReference("El usuario dueño no existe")


async def list_hives(db: Database) -> list[dict]:
    rows = await repository.list_hives(db)
    now = _utc_now()
    return [to_hive_list_item(row, now=now) for row in rows]


async def list_active_hives(db: Database) -> list[dict]:
    return await repository.list_active_hives(db)


async def get_hive(db: Database, hive_id: int) -> dict:
    hive = await repository.get_hive(db, hive_id)
    if hive is None:
        raise NotFound(HIVE_NOT_FOUND)
    location = await repository.get_latest_location(db, hive_id)
    nodes = await repository.list_hive_nodes(db, hive_id)
    return to_hive_detail(hive, location, nodes)


async def create_hive(db: Database, payload: schemas.HiveRequest) -> dict:
    fields = validators.validate_hive(payload)
    await _require_owner(db, fields.dueno)

    hive_id = await repository.create_hive(db, descripcion=fields.descripcion, dueno=fields.dueno)
    logger.info("hive_created id=%s dueno=%s", hive_id, fields.dueno)
    return {
        "id": hive_id,
        "descripcion": fields.descripcion,
        "dueno": fields.dueno,
        "message": "Colmena creada exitosamente",
    }


async def update_hive(db: Database, hive_id: int, payload: schemas.HiveRequest) -> dict:
    await _require_hive(db, hive_id)
    fields = validators.validate_hive(payload)
    await _require_owner(db, fields.dueno)

    updated = await repository.update_hive(db, hive_id, descripcion=fields.descripcion, dueno=fields.dueno)
    if updated == 0:
        raise NotFound(HIVE_NOT_FOUND)
    logger.info("hive_updated id=%s", hive_id)
    return {
        "message": "Colmena actualizada correctamente",
        "id": hive_id,
        "descripcion": fields.descripcion,
        "dueno": fields.dueno,
    }


async def delete_hive(db: Database, hive_id: int) -> dict:
    # Children first; all three statements commit or none do.
    async with db.transaction() as tx:
        await _require_hive(tx, hive_id)
        nodes = await repository.delete_hive_nodes(tx, hive_id)
        locations = await repository.delete_hive_locations(tx, hive_id)
        await repository.delete_hive(tx, hive_id)

    logger.info("hive_deleted id=%s nodes=%s locations=%s", hive_id, nodes, locations)
    return {"message": "Colmena eliminada correctamente", "id": hive_id}


async def upsert_location(db: Database, hive_id: int, payload: schemas.LocationRequest) -> dict:
    await _require_hive(db, hive_id)
    fields = validators.validate_location(payload)

    row = await repository.upsert_location(
        db,
        hive_id,
        latitud=fields.latitud,
        longitud=fields.longitud,
        descripcion=fields.descripcion,
        comuna=fields.comuna,
    )
    logger.info("hive_location_saved colmena_id=%s inserted=%s", hive_id, bool(row.get("inserted")))
    return {
        "message": "Ubicación agregada/actualizada correctamente",
        "colmena_id": hive_id,
        "ubicacion": to_location_response(row),
    }


async def list_locations(db: Database, hive_id: int) -> list[dict]:
    await _require_hive(db, hive_id)
    return await repository.list_locations(db, hive_id)


async def list_hive_nodes(db: Database, hive_id: int) -> list[dict]:
    await _require_hive(db, hive_id)
    return await repository.list_hive_nodes(db, hive_id)


async def associate_node(db: Database, hive_id: int, payload: schemas.HiveNodeRequest) -> dict:
    await _require_hive(db, hive_id)
    nodo_id = validators.validate_hive_node(payload)
    if not await nodos_repository.node_exists(db, nodo_id):
        raise InvalidReference("El nodo especificado no existe")

    created = await repository.associate_node(db, hive_id, nodo_id)
    if created:
        logger.info("hive_node_associated colmena_id=%s nodo_id=%s", hive_id, nodo_id)
    return {
        "message": "Nodo asociado correctamente" if created else "El nodo ya estaba asociado",
        "colmena_id": hive_id,
        "nodo_id": nodo_id,
        "created": created,
    }


async def dissociate_node(db: Database, hive_id: int, nodo_id: int) -> dict:
    await _require_hive(db, hive_id)
    removed = await repository.dissociate_node(db, hive_id, nodo_id)
    if removed == 0:
        raise NotFound("El nodo no está asociado a la colmena")
    logger.info("hive_node_dissociated colmena_id=%s nodo_id=%s", hive_id, nodo_id)
    return {"message": "Nodo desasociado correctamente", "colmena_id": hive_id, "nodo_id": nodo_id}
