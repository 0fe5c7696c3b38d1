"""
Mensajes API schemas.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from pydantic import BaseModel, Field


class MessageRequest(BaseModel):
    nodo_id: int | None = None
    topico: str | None = Field(default=None, max_length=255)
    payload: str | None = None


@dataclass(frozen=True)
class MessageFilters:
    """
    Optional listing filters; None means "not filtered".
    `fecha_fin` is inclusive (the whole day counts).
    """

    nodo_id: int | None = None
    topico: str | None = None
    fecha_inicio: date | None = None
    fecha_fin: date | None = None
