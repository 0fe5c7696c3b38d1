"""
Nodos business logic: sensor nodes and their types.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from core.db import Database
from core.errors import HasDependents, InvalidReference, NotFound

from . import repository, schemas, validators

logger = logging.getLogger(__name__)

NODE_NOT_FOUND = "Nodo no encontrado"
NODE_TYPE_NOT_FOUND = "Tipo de nodo no encontrado"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_node_response(row: dict, *, now: datetime | None = None) -> dict:
    """
    `tipo` is the type's description here (what the frontend shows);
    identificador, fecha_instalacion and activo are synthesized.
    """
    return {
        "id": int(row["id"]),
        "identificador": f"Nodo {row['id']}",
        "descripcion": row["descripcion"],
        "tipo": row.get("tipo_descripcion"),
        "latitud": row.get("latitud"),
        "longitud": row.get("longitud"),
        "fecha_instalacion": (now or _utc_now()).isoformat(),
        "activo": True,
    }


def to_node_type_response(row: dict) -> dict:
    return {
        "id": int(row["tipo"]),
        "tipo": int(row["tipo"]),
        "descripcion": row["descripcion"],
    }


async def _require_node_type(db: Database, tipo: int) -> None:
    if not await repository.node_type_exists(db, tipo):
        raise InvalidReference("El tipo de nodo especificado no existe")


async def list_nodes(db: Database) -> list[dict]:
    rows = await repository.list_nodes(db)
    now = _utc_now()
    return [to_node_response(row, now=now) for row in rows]


async def get_node(db: Database, node_id: int) -> dict:
    row = await repository.get_node(db, node_id)
    if row is None:
        raise NotFound(NODE_NOT_FOUND)
    return {**to_node_response(row), "tipo_id": row["tipo"]}


async def create_node(db: Database, payload: schemas.NodeRequest) -> dict:
    fields = validators.validate_node(payload)
    await _require_node_type(db, fields.tipo)

    node_id = await repository.create_node(db, descripcion=fields.descripcion, tipo=fields.tipo)
    logger.info("node_created id=%s tipo=%s", node_id, fields.tipo)
    return {
        "id": node_id,
        "descripcion": fields.descripcion,
        "tipo": fields.tipo,
        "message": "Nodo creado exitosamente",
    }


async def update_node(db: Database, node_id: int, payload: schemas.NodeRequest) -> dict:
    if not await repository.node_exists(db, node_id):
        raise NotFound(NODE_NOT_FOUND)
    fields = validators.validate_node(payload)
    await _require_node_type(db, fields.tipo)

    updated = await repository.update_node(db, node_id, descripcion=fields.descripcion, tipo=fields.tipo)
    if updated == 0:
        raise NotFound(NODE_NOT_FOUND)
    logger.info("node_updated id=%s", node_id)
    return {
        "message": "Nodo actualizado correctamente",
        "id": node_id,
        "descripcion": fields.descripcion,
        "tipo": fields.tipo,
    }


async def delete_node(db: Database, node_id: int) -> dict:
    async with db.transaction() as tx:
        row = await repository.get_node(tx, node_id)
        if row is None:
            raise NotFound(NODE_NOT_FOUND)

        messages = await repository.count_node_messages(tx, node_id)
        if messages > 0:
            raise HasDependents(
                f"No se puede eliminar el nodo porque tiene {messages} mensaje(s) asociado(s).",
                count=messages,
            )
        await repository.delete_node_links(tx, node_id)
        await repository.delete_node_locations(tx, node_id)
        await repository.delete_node(tx, node_id)

    logger.info("node_deleted id=%s", node_id)
    return {"message": f'Nodo "{row["descripcion"]}" eliminado correctamente', "id": node_id}


async def list_node_types(db: Database) -> list[dict]:
    rows = await repository.list_node_types(db)
    return [to_node_type_response(row) for row in rows]


async def create_node_type(db: Database, payload: schemas.NodeTypeRequest) -> dict:
    descripcion = validators.validate_node_type(payload)
    tipo = await repository.create_node_type(db, descripcion=descripcion)
    logger.info("node_type_created tipo=%s", tipo)
    return {
        "id": tipo,
        "tipo": tipo,
        "descripcion": descripcion,
        "message": "Tipo de nodo creado exitosamente",
    }


async def update_node_type(db: Database, tipo: int, payload: schemas.NodeTypeRequest) -> dict:
    if not await repository.node_type_exists(db, tipo):
        raise NotFound(NODE_TYPE_NOT_FOUND)
    descripcion = validators.validate_node_type(payload)

    updated = await repository.update_node_type(db, tipo, descripcion=descripcion)
    if updated == 0:
        raise NotFound(NODE_TYPE_NOT_FOUND)
    logger.info("node_type_updated tipo=%s", tipo)
    return {
        "message": "Tipo de nodo actualizado correctamente",
        "id": tipo,
        "descripcion": descripcion,
    }


async def delete_node_type(db: Database, tipo: int) -> dict:
    async with db.transaction() as tx:
        row = await repository.get_node_type(tx, tipo)
        if row is None:
            raise NotFound(NODE_TYPE_NOT_FOUND)

        nodes = await repository.count_nodes_of_type(tx, tipo)
        if nodes > 0:
            raise HasDependents(
                f"No se puede eliminar el tipo de nodo porque hay {nodes} nodo(s) que lo utilizan.",
                count=nodes,
            )
        await repository.delete_node_type(tx, tipo)

    logger.info("node_type_deleted tipo=%s", tipo)
    return {"message": f'Tipo de nodo "{row["descripcion"]}" eliminado correctamente', "id": tipo}
