"""
Error taxonomy and its HTTP mapping.

Services raise these; `register_error_handlers` turns them into JSON bodies of
the form {"error": "..."} (+ "details" in development). Driver internals
and stack traces never reach the client in production.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ApiError(Exception):
    status_code = 500
    default_message = "Error interno del servidor"

    def __init__(self, message: str | None = None, *, details: str | None = None) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def payload(self) -> dict[str, Any]:
        return {}


class ValidationFailure(ApiError):
    status_code = 400
    default_message = "Datos inválidos"

    def __init__(self, missing_fields: list[str] | tuple[str, ...], message: str | None = None) -> None:
        self.missing_fields = list(missing_fields)
        if message is None:
            message = "Campos obligatorios faltantes: " + ", ".join(self.missing_fields)
        super().__init__(message)

    def payload(self) -> dict[str, Any]:
        return {"campos": self.missing_fields}


class InvalidReference(ApiError):
    status_code = 400
    default_message = "La referencia indicada no existe"


class NotFound(ApiError):
    status_code = 404
    default_message = "Recurso no encontrado"


class HasDependents(ApiError):
    status_code = 400
    default_message = "El recurso tiene registros asociados"

    def __init__(self, message: str, *, count: int) -> None:
        self.count = count
        super().__init__(message)

    def payload(self) -> dict[str, Any]:
        return {"dependientes": self.count}


class ReferentialConstraint(ApiError):
    status_code = 400
    default_message = "La operación viola una restricción de integridad"


class InvalidCredentials(ApiError):
    status_code = 401
    default_message = "Credenciales inválidas"


class PersistenceError(ApiError):
    status_code = 500
    default_message = "Error de base de datos"


class Unreachable(ApiError):
    status_code = 503
    default_message = "Base de datos no disponible"


def _show_details(request: Request) -> bool:
    settings = getattr(request.app.state, "settings", None)
    return bool(settings is not None and settings.is_development)


def error_body(
    message: str,
    *,
    details: str | None = None,
    show_details: bool = False,
    extra: dict[str, Any] | None = None,
) -> dict[str, Any]:
    body: dict[str, Any] = {"error": message}
    if extra:
        body.update(extra)
    if show_details and details:
        body["details"] = details
    return body


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApiError)
    async def handle_api_error(request: Request, exc: ApiError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(
                "api_error kind=%s path=%s message=%s details=%s",
                type(exc).__name__,
                request.url.path,
                exc.message,
                exc.details,
            )
        else:
            logger.info("api_error kind=%s path=%s message=%s", type(exc).__name__, request.url.path, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(
                exc.message,
                details=exc.details,
                show_details=_show_details(request),
                extra=exc.payload(),
            ),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        fields = []
        for err in exc.errors():
            loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
            name = ".".join(loc) or "body"
            if name not in fields:
                fields.append(name)
        failure = ValidationFailure(fields, message="Datos inválidos: " + ", ".join(fields))
        return JSONResponse(
            status_code=failure.status_code,
            content=error_body(
                failure.message,
                details=str(exc.errors()),
                show_details=_show_details(request),
                extra=failure.payload(),
            ),
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404 and exc.detail == "Not Found":
            message = "Ruta no encontrada"
        else:
            message = str(exc.detail)
        return JSONResponse(status_code=exc.status_code, content={"error": message})

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("unexpected_error path=%s kind=%s", request.url.path, type(exc).__name__)
        return JSONResponse(
            status_code=500,
            content=error_body(
                "Error interno del servidor",
                details=str(exc),
                show_details=_show_details(request),
            ),
        )
