"""
Colmenas API schemas (request bodies).
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class HiveRequest(BaseModel):
    descripcion: str | None = Field(default=None, max_length=255)
    dueno: int | None = None


class LocationRequest(BaseModel):
    # 0 is a valid coordinate; only a missing value is rejected.
    latitud: float | None = Field(default=None, ge=-90.0, le=90.0)
    longitud: float | None = Field(default=None, ge=-180.0, le=180.0)
    descripcion: str | None = Field(default=None, max_length=255)
    comuna: str | None = Field(default=None, max_length=100)


class HiveNodeRequest(BaseModel):
    nodo_id: int | None = None
