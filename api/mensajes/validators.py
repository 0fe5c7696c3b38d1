"""
Mensajes validation rules (pure, no I/O).
"""

from __future__ import annotations

from dataclasses import dataclass

from core.errors import ValidationFailure
from core.validation import clean_text, optional_text, require

from . import schemas


@dataclass(frozen=True)
class MessageFields:
    nodo_id: int
    topico: str
    payload: str


def validate_message(payload: schemas.MessageRequest) -> MessageFields:
    topico = clean_text(payload.topico)
    body = clean_text(payload.payload)
    require(nodo_id=payload.nodo_id, topico=topico, payload=body)
    return MessageFields(nodo_id=int(payload.nodo_id), topico=topico, payload=body)


def normalize_filters(filters: schemas.MessageFilters) -> schemas.MessageFilters:
    if filters.fecha_inicio and filters.fecha_fin and filters.fecha_inicio > filters.fecha_fin:
        raise ValidationFailure(
            ["fecha_inicio", "fecha_fin"],
            message="fecha_inicio no puede ser posterior a fecha_fin",
        )
    return schemas.MessageFilters(
        nodo_id=filters.nodo_id,
        topico=optional_text(filters.topico),
        fecha_inicio=filters.fecha_inicio,
        fecha_fin=filters.fecha_fin,
    )
