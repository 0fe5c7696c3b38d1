"""
Usuarios validation rules (pure, no I/O).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from core.config import ROLE_POLICY_REJECT
from core.errors import InvalidReference, ValidationFailure
from core.validation import clean_text, optional_text, require

from . import schemas, security

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NewUser:
    nombre: str
    apellido: str
    clave: str
    rol: int


@dataclass(frozen=True)
class UserChanges:
    nombre: str
    apellido: str
    rol: int
    clave: str | None


def _check_credential_length(clave: str) -> None:
    if not security.fits_bcrypt(clave):
        raise ValidationFailure(
            ["clave"],
            message=f"La clave no puede superar {security.MAX_PASSWORD_BYTES} bytes",
        )


def validate_new_user(payload: schemas.UserCreateRequest) -> NewUser:
    nombre = clean_text(payload.nombre) or clean_text(payload.email)
    apellido = clean_text(payload.apellido)
    clave = clean_text(payload.clave) or clean_text(payload.password)
    require(nombre=nombre, apellido=apellido, clave=clave)
    _check_credential_length(clave)
    rol = payload.rol if payload.rol is not None else schemas.DEFAULT_ROLE
    return NewUser(nombre=nombre, apellido=apellido, clave=clave, rol=rol)


def resolve_role(requested: int, *, role_exists: bool, policy: str) -> int:
    """
    Decide which role a new user gets when the requested one is unknown.

    policy "substitute" falls back to the default role (and says so in the
    log); policy "reject" refuses the request.
    """
    if role_exists:
        return requested
    if policy == ROLE_POLICY_REJECT:
        raise InvalidReference("El rol especificado no existe")
    logger.warning("unknown_role requested=%s substituted=%s", requested, schemas.DEFAULT_ROLE)
    return schemas.DEFAULT_ROLE


def validate_user_changes(payload: schemas.UserUpdateRequest) -> UserChanges:
    nombre = clean_text(payload.nombre)
    apellido = clean_text(payload.apellido)
    require(nombre=nombre, apellido=apellido, rol=payload.rol)
    clave = optional_text(payload.clave)
    if clave is not None:
        _check_credential_length(clave)
    return UserChanges(nombre=nombre, apellido=apellido, rol=int(payload.rol), clave=clave)


def validate_login(payload: schemas.LoginRequest) -> tuple[str, str]:
    identifier = clean_text(payload.email)
    # Stored credentials are trimmed on write, so compare the trimmed value.
    password = clean_text(payload.password)
    require(email=identifier, password=password)
    return identifier, password
