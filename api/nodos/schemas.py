"""
Nodos API schemas (request bodies).
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class NodeTypeRequest(BaseModel):
    descripcion: str | None = Field(default=None, max_length=255)


class NodeRequest(BaseModel):
    descripcion: str | None = Field(default=None, max_length=255)
    tipo: int | None = None
