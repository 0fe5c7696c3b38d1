"""
Usuarios API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from core.config import Settings, get_settings
from core.db import Database, get_db

from . import schemas, service

router = APIRouter()


@router.post("/usuarios/login")
async def login(
    request: schemas.LoginRequest,
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> dict:
    return await service.login(db, settings, request)


@router.get("/usuarios")
async def list_users(db: Database = Depends(get_db)) -> list[dict]:
    return await service.list_users(db)


@router.post("/usuarios", status_code=status.HTTP_201_CREATED)
async def create_user(
    request: schemas.UserCreateRequest,
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> dict:
    return await service.create_user(db, settings, request)


@router.get("/usuarios/{user_id}")
async def get_user(user_id: int, db: Database = Depends(get_db)) -> dict:
    return await service.get_user(db, user_id)


@router.put("/usuarios/{user_id}")
async def update_user(
    user_id: int,
    request: schemas.UserUpdateRequest,
    db: Database = Depends(get_db),
) -> dict:
    return await service.update_user(db, user_id, request)


@router.delete("/usuarios/{user_id}")
async def delete_user(user_id: int, db: Database = Depends(get_db)) -> dict:
    return await service.delete_user(db, user_id)


@router.get("/roles")
async def list_roles(db: Database = Depends(get_db)) -> list[dict]:
    return await service.list_roles(db)


@router.get("/select/usuarios")
async def users_for_select(db: Database = Depends(get_db)) -> list[dict]:
    return await service.list_users_for_select(db)
