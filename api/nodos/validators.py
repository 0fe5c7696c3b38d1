"""
Nodos validation rules (pure, no I/O).
"""

from __future__ import annotations

from dataclasses import dataclass

from core.validation import clean_text, require

from . import schemas


@dataclass(frozen=True)
class NodeFields:
    descripcion: str
    tipo: int


def validate_node_type(payload: schemas.NodeTypeRequest) -> str:
    descripcion = clean_text(payload.descripcion)
    require(descripcion=descripcion)
    return descripcion


def validate_node(payload: schemas.NodeRequest) -> NodeFields:
    descripcion = clean_text(payload.descripcion)
    require(descripcion=descripcion, tipo=payload.tipo)
    return NodeFields(descripcion=descripcion, tipo=int(payload.tipo))
