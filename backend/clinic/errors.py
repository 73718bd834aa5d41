"""
Errores de dominio y su traducción a respuestas JSON.

Todas las respuestas de error comparten el mismo sobre:
    {"success": false, "code": "<Tipo>", "error": "<mensaje>"}
y el código HTTP indica la clase de resultado.
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ClinicError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Solicitud inválida."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def code(self) -> str:
        return type(self).__name__


class Unauthorized(ClinicError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "No autorizado. Por favor inicia sesión."


class InvalidCredentials(ClinicError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Credenciales inválidas."


class Forbidden(ClinicError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Acceso denegado."


class ProfileNotFound(ClinicError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Perfil no encontrado."


class IncompleteData(ClinicError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Datos incompletos."


class ValidationFailed(ClinicError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Datos inválidos."


class NotFoundOrForbidden(ClinicError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "No se encontró el recurso o no tienes permiso."


class NotFound(ClinicError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "No encontrado."


class SlotTaken(ClinicError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "El horario seleccionado ya está ocupado."


class Conflict(ClinicError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflicto con el estado actual."


class ServiceUnavailable(ClinicError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Servicio no disponible."


class DatabaseError(ClinicError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Error interno. Inténtalo más tarde."


def error_body(code: str, message: str) -> dict:
    return {"success": False, "code": code, "error": message}


def _first_validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return ValidationFailed.default_message
    err = errors[0]
    # ValueError lanzado en un validador: su texto va tal cual
    ctx_error = (err.get("ctx") or {}).get("error")
    if ctx_error is not None:
        return str(ctx_error)
    loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
    return f"{loc}: {err.get('msg')}" if loc else str(err.get("msg"))


async def clinic_error_handler(request: Request, exc: ClinicError):
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.code, exc.message))


async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=jsonable_encoder(error_body("ValidationFailed", _first_validation_message(exc))),
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body("HTTPError", str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def database_error_handler(request: Request, exc: SQLAlchemyError):
    # el texto del driver se queda en el log
    logger.exception("Database error on %s %s", request.method, request.url.path)
    err = DatabaseError()
    return JSONResponse(status_code=err.status_code, content=error_body(err.code, err.message))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ClinicError, clinic_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
