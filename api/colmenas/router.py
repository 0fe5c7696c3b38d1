"""
Colmenas API endpoints.

Literal paths (/colmenas/activas) are declared before /colmenas/{hive_id}.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from core.db import Database, get_db

from . import schemas, service

router = APIRouter()


@router.get("/colmenas")
async def list_hives(db: Database = Depends(get_db)) -> list[dict]:
    return await service.list_hives(db)


@router.post("/colmenas", status_code=status.HTTP_201_CREATED)
async def create_hive(request: schemas.HiveRequest, db: Database = Depends(get_db)) -> dict:
    return await service.create_hive(db, request)


@router.get("/colmenas/activas")
async def list_active_hives(db: Database = Depends(get_db)) -> list[dict]:
    return await service.list_active_hives(db)


@router.get("/colmenas/{hive_id}")
async def get_hive(hive_id: int, db: Database = Depends(get_db)) -> dict:
    return await service.get_hive(db, hive_id)


@router.put("/colmenas/{hive_id}")
async def update_hive(hive_id: int, request: schemas.HiveRequest, db: Database = Depends(get_db)) -> dict:
    return await service.update_hive(db, hive_id, request)


@router.delete("/colmenas/{hive_id}")
async def delete_hive(hive_id: int, db: Database = Depends(get_db)) -> dict:
    return await service.delete_hive(db, hive_id)


@router.get("/colmenas/{hive_id}/ubicaciones")
async def list_locations(hive_id: int, db: Database = Depends(get_db)) -> list[dict]:
    return await service.list_locations(db, hive_id)


@router.post("/colmenas/{hive_id}/ubicaciones")
async def upsert_location(
    hive_id: int,
    request: schemas.LocationRequest,
    db: Database = Depends(get_db),
) -> dict:
    return await service.upsert_location(db, hive_id, request)


@router.get("/colmenas/{hive_id}/nodos")
async def list_hive_nodes(hive_id: int, db: Database = Depends(get_db)) -> list[dict]:
    return await service.list_hive_nodes(db, hive_id)


@router.post("/colmenas/{hive_id}/nodos")
async def associate_node(
    hive_id: int,
    request: schemas.HiveNodeRequest,
    db: Database = Depends(get_db),
) -> dict:
    return await service.associate_node(db, hive_id, request)


@router.delete("/colmenas/{hive_id}/nodos/{nodo_id}")
async def dissociate_node(hive_id: int, nodo_id: int, db: Database = Depends(get_db)) -> dict:
    return await service.dissociate_node(db, hive_id, nodo_id)
