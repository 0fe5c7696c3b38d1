"""
Mensajes API endpoints.

/mensajes/recientes is declared before /mensajes/{message_id}.
"""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query, status

from core.db import Database, get_db
from core.filters import Page

from . import schemas, service

router = APIRouter()


@router.get("/mensajes")
async def list_messages(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    nodo_id: int | None = Query(default=None),
    topico: str | None = Query(default=None, max_length=255),
    fecha_inicio: date | None = Query(default=None),
    fecha_fin: date | None = Query(default=None),
    db: Database = Depends(get_db),
) -> dict:
    filters = schemas.MessageFilters(
        nodo_id=nodo_id,
        topico=topico,
        fecha_inicio=fecha_inicio,
        fecha_fin=fecha_fin,
    )
    return await service.list_messages(db, filters, Page(page=page, limit=limit))


@router.get("/mensajes/recientes")
async def recent_messages(
    hours: int = Query(24, ge=1, le=24 * 365),
    db: Database = Depends(get_db),
) -> list[dict]:
    return await service.list_recent_messages(db, hours=hours)


@router.post("/mensajes", status_code=status.HTTP_201_CREATED)
async def create_message(request: schemas.MessageRequest, db: Database = Depends(get_db)) -> dict:
    return await service.create_message(db, request)


@router.get("/mensajes/{message_id}")
async def get_message(message_id: int, db: Database = Depends(get_db)) -> dict:
    return await service.get_message(db, message_id)


@router.put("/mensajes/{message_id}")
async def update_message(
    message_id: int,
    request: schemas.MessageRequest,
    db: Database = Depends(get_db),
) -> dict:
    return await service.update_message(db, message_id, request)


@router.delete("/mensajes/{message_id}")
async def delete_message(message_id: int, db: Database = Depends(get_db)) -> dict:
    return await service.delete_message(db, message_id)
