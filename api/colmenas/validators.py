"""
Colmenas validation rules (pure, no I/O).
"""

from __future__ import annotations

from dataclasses import dataclass

from core.validation import clean_text, optional_text, require

from . import schemas


@dataclass(frozen=True)
class HiveFields:
    descripcion: str
    dueno: int


@dataclass(frozen=True)
class LocationFields:
    latitud: float
    longitud: float
    descripcion: str | None
    comuna: str | None


def validate_hive(payload: schemas.HiveRequest) -> HiveFields:
    descripcion = clean_text(payload.descripcion)
    require(descripcion=descripcion, dueno=payload.dueno)
    return HiveFields(descripcion=descripcion, dueno=int(payload.dueno))


def validate_location(payload: schemas.LocationRequest) -> LocationFields:
    require(latitud=payload.latitud, longitud=payload.longitud)
    return LocationFields(
        latitud=float(payload.latitud),
        longitud=float(payload.longitud),
        descripcion=optional_text(payload.descripcion),
        comuna=optional_text(payload.comuna),
    )


def validate_hive_node(payload: schemas.HiveNodeRequest) -> int:
    require(nodo_id=payload.nodo_id)
    return int(payload.nodo_id)
