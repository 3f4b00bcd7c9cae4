"""
Formato común de respuesta de la API y manejadores de excepciones.

Toda respuesta sigue el sobre {success, data?, message?, errors?, pagination?}.
"""
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..application.errors import GestionInsumosError
from ..application.dtos import Paginacion
from ..infrastructure.logging_config import get_logger

logger = get_logger("api")


def respuesta(data: Any = None, message: Optional[str] = None, pagination: Optional[Paginacion] = None) -> dict:
    cuerpo: dict = {"success": True}
    if data is not None:
        cuerpo["data"] = data
    if message:
        cuerpo["message"] = message
    if pagination is not None:
        cuerpo["pagination"] = pagination
    return cuerpo


def paginado(items: list, page: int, limit: int, total: int) -> dict:
    return respuesta(items, pagination=Paginacion.de(page, limit, total))


def _error(status_code: int, message: str, errors: Optional[list] = None) -> JSONResponse:
    cuerpo: dict = {"success": False, "message": message}
    if errors:
        cuerpo["errors"] = errors
    return JSONResponse(status_code=status_code, content=jsonable_encoder(cuerpo))


def registrar_manejadores(app: FastAPI) -> None:
    """Traduce errores de dominio, de validación y de base de datos al sobre JSON."""

    @app.exception_handler(GestionInsumosError)
    async def dominio_handler(request: Request, exc: GestionInsumosError):
        if exc.status_code >= 500:
            logger.exception("Error interno en %s %s", request.method, request.url.path)
            return _error(exc.status_code, "Error interno del servidor")
        logger.info("%s %s -> %s %s: %s", request.method, request.url.path, exc.status_code, type(exc).__name__, exc)
        return _error(exc.status_code, str(exc))

    @app.exception_handler(RequestValidationError)
    async def validacion_handler(request: Request, exc: RequestValidationError):
        errores = [
            {
                "campo": ".".join(str(p) for p in e.get("loc", []) if p != "body"),
                "mensaje": e.get("msg", ""),
                "tipo": e.get("type", ""),
            }
            for e in exc.errors()
        ]
        logger.warning("Validación fallida %s %s: %s", request.method, request.url.path, errores)
        return _error(400, "Datos de entrada inválidos", errores)

    @app.exception_handler(IntegrityError)
    async def integridad_handler(request: Request, exc: IntegrityError):
        # El UnitOfWork ya revirtió la transacción; no se expone el detalle del motor
        logger.warning("Violación de integridad en %s %s: %s", request.method, request.url.path, exc.orig)
        return _error(400, "El registro viola una restricción de unicidad o referencia")

    @app.exception_handler(StarletteHTTPException)
    async def http_handler(request: Request, exc: StarletteHTTPException):
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def inesperado_handler(request: Request, exc: Exception):
        logger.exception("Error no controlado en %s %s", request.method, request.url.path)
        return _error(500, "Error interno del servidor")
