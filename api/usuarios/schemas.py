"""
Usuarios API schemas (request bodies).

Fields are optional on purpose: presence and blankness are checked after
trimming by `validators.py`, so a missing field is reported as a 400 with the
field name instead of a generic type error.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

DEFAULT_ROLE = 2  # Apicultor


class LoginRequest(BaseModel):
    # The frontend sends the user's `nombre` in the `email` field.
    email: str | None = Field(default=None, max_length=320)
    password: str | None = Field(default=None, max_length=128)


class UserCreateRequest(BaseModel):
    nombre: str | None = Field(default=None, max_length=100)
    apellido: str | None = Field(default=None, max_length=100)
    clave: str | None = Field(default=None, max_length=128)
    # Accepted aliases: `email` for nombre, `password` for clave.
    email: str | None = Field(default=None, max_length=320)
    password: str | None = Field(default=None, max_length=128)
    rol: int | None = None


class UserUpdateRequest(BaseModel):
    nombre: str | None = Field(default=None, max_length=100)
    apellido: str | None = Field(default=None, max_length=100)
    # Blank or absent keeps the stored credential.
    clave: str | None = Field(default=None, max_length=128)
    rol: int | None = None
