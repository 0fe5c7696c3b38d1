"""
Dashboard and review endpoints.

Reviews (revisiones) have no table yet; the endpoints keep the frontend's
contract with an empty list and an acknowledgement.
"""

from __future__ import annotations

import logging
import time

from fastapi import APIRouter, Depends

from core.db import Database, get_db

from . import repository

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/dashboard/stats")
async def dashboard_stats(db: Database = Depends(get_db)) -> dict:
    row = await repository.get_stats(db)
    colmenas = int(row["colmenas"])
    return {
        "totalColmenas": colmenas,
        "totalUsuarios": int(row["usuarios"]),
        "mensajesHoy": int(row["mensajes_hoy"]),
        # No activity flag in the schema: every hive counts as active.
        "colmenasActivas": colmenas,
    }


@router.get("/revisiones")
async def list_reviews() -> list[dict]:
    return []


@router.post("/revisiones")
async def create_review() -> dict:
    review_id = int(time.time() * 1000)
    logger.info("review_acknowledged id=%s persisted=false", review_id)
    return {
        "message": "Funcionalidad de revisiones pendiente de implementación",
        "id": review_id,
    }
