"""
Diagnostic endpoints. Only mounted when ENABLE_DEBUG_ROUTES is set
(see main.py); never enable in production.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from core.db import Database, get_db

from . import repository

router = APIRouter()


@router.get("/debug/estructura")
async def schema_structure(db: Database = Depends(get_db)) -> dict:
    tables = await repository.list_tables(db)
    estructura: dict = {"tablas": tables}
    for table in tables:
        estructura[table] = await repository.list_columns(db, table)
    return estructura
