"""
Nodos API endpoints (nodes and node types).
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from core.db import Database, get_db

from . import schemas, service

router = APIRouter()


@router.get("/nodos")
async def list_nodes(db: Database = Depends(get_db)) -> list[dict]:
    return await service.list_nodes(db)


@router.post("/nodos", status_code=status.HTTP_201_CREATED)
async def create_node(request: schemas.NodeRequest, db: Database = Depends(get_db)) -> dict:
    return await service.create_node(db, request)


@router.get("/nodos/{node_id}")
async def get_node(node_id: int, db: Database = Depends(get_db)) -> dict:
    return await service.get_node(db, node_id)


@router.put("/nodos/{node_id}")
async def update_node(node_id: int, request: schemas.NodeRequest, db: Database = Depends(get_db)) -> dict:
    return await service.update_node(db, node_id, request)


@router.delete("/nodos/{node_id}")
async def delete_node(node_id: int, db: Database = Depends(get_db)) -> dict:
    return await service.delete_node(db, node_id)


@router.get("/nodo-tipos")
async def list_node_types(db: Database = Depends(get_db)) -> list[dict]:
    return await service.list_node_types(db)


@router.post("/nodo-tipos", status_code=status.HTTP_201_CREATED)
async def create_node_type(request: schemas.NodeTypeRequest, db: Database = Depends(get_db)) -> dict:
    return await service.create_node_type(db, request)


@router.put("/nodo-tipos/{tipo}")
async def update_node_type(
    tipo: int,
    request: schemas.NodeTypeRequest,
    db: Database = Depends(get_db),
) -> dict:
    return await service.update_node_type(db, tipo, request)


@router.delete("/nodo-tipos/{tipo}")
async def delete_node_type(tipo: int, db: Database = Depends(get_db)) -> dict:
    return await service.delete_node_type(db, tipo)
