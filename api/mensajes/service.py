"""
Mensajes business logic: node telemetry records.
"""

from __future__ import annotations

import logging

from core.db import Database
from core.errors import InvalidReference, NotFound
from core.filters import Page
from nodos import repository as nodos_repository

from . import repository, schemas, validators

logger = logging.getLogger(__name__)

MESSAGE_NOT_FOUND = "Mensaje no encontrado"


def to_message_response(row: dict) -> dict:
    return {
        "id": int(row["id"]),
        "nodo_id": row["nodo_id"],
        "nodo_identificador": row.get("nodo_descripcion"),
        "topico": row["topico"],
        "payload": row["payload"],
        "fecha": row["fecha"],
    }


async def _require_node(db: Database, nodo_id: int) -> None:
    if not await nodos_repository.node_exists(db, nodo_id):
        raise InvalidReference("El nodo especificado no existe")


async def _load_message(db: Database, message_id: int) -> dict:
    row = await repository.get_message(db, message_id)
    if row is None:
        raise NotFound(MESSAGE_NOT_FOUND)
    return to_message_response(row)


async def list_messages(db: Database, filters: schemas.MessageFilters, page: Page) -> dict:
    filters = validators.normalize_filters(filters)
    where = repository.message_predicate(filters)

    rows = await repository.list_messages(db, where, page)
    total = await repository.count_messages(db, where)
    return {
        "data": [to_message_response(row) for row in rows],
        "pagination": page.describe(total),
    }


async def list_recent_messages(db: Database, *, hours: int) -> list[dict]:
    rows = await repository.list_recent_messages(db, hours=hours)
    return [to_message_response(row) for row in rows]


async def get_message(db: Database, message_id: int) -> dict:
    return await _load_message(db, message_id)


async def create_message(db: Database, payload: schemas.MessageRequest) -> dict:
    fields = validators.validate_message(payload)
    await _require_node(db, fields.nodo_id)

    message_id = await repository.create_message(
        db,
        nodo_id=fields.nodo_id,
        topico=fields.topico,
        payload=fields.payload,
    )
    logger.info("message_created id=%s nodo_id=%s", message_id, fields.nodo_id)
    return {
        "id": message_id,
        "message": "Mensaje creado exitosamente",
        "mensaje": await _load_message(db, message_id),
    }


async def update_message(db: Database, message_id: int, payload: schemas.MessageRequest) -> dict:
    if not await repository.message_exists(db, message_id):
        raise NotFound(MESSAGE_NOT_FOUND)
    fields = validators.validate_message(payload)
    await _require_node(db, fields.nodo_id)

    updated = await repository.update_message(
        db,
        message_id,
        nodo_id=fields.nodo_id,
        topico=fields.topico,
        payload=fields.payload,
    )
    if updated == 0:
        raise NotFound(MESSAGE_NOT_FOUND)
    logger.info("message_updated id=%s", message_id)
    return {
        "message": "Mensaje actualizado correctamente",
        "mensaje": await _load_message(db, message_id),
    }


async def delete_message(db: Database, message_id: int) -> dict:
    row = await repository.get_message(db, message_id)
    if row is None:
        raise NotFound(MESSAGE_NOT_FOUND)

    deleted = await repository.delete_message(db, message_id)
    if deleted == 0:
        raise NotFound(MESSAGE_NOT_FOUND)
    logger.info("message_deleted id=%s", message_id)
    return {
        "message": f'Mensaje "{row["topico"]}: {row["payload"]}" eliminado correctamente',
        "id": message_id,
    }
