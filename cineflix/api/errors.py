"""
JSON error responses.

Every failure leaves the API as
``{"error": ..., "status": ..., "path": ..., "requestId": ...}``.
Auth failures collapse to one generic message per kind; the specific cause
only goes to the log.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from cineflix.services.access_service import InvalidOrExpiredCode, Unauthenticated
from cineflix.services.tmdb import TMDBError

logger = logging.getLogger(__name__)

INVALID_CODE_MESSAGE = "Invalid or expired code"
UNAUTHENTICATED_MESSAGE = "Invalid or expired session"
UPSTREAM_MESSAGE = "Movie metadata service unavailable"
NOT_FOUND_MESSAGE = "Movie not found"


def error_response(request: Request, status: int, message: str, **extra) -> JSONResponse:
    body = {
        "error": message,
        "status": status,
        "path": request.url.path,
        "requestId": getattr(request.state, "request_id", None),
    }
    body.update(extra)

    if status >= 500:
        logger.error("%s %s -> %d %s", request.method, request.url.path, status, message)
    else:
        logger.warning("%s %s -> %d %s", request.method, request.url.path, status, message)

    headers = {"WWW-Authenticate": "Bearer"} if status == 401 else None
    return JSONResponse(body, status_code=status, headers=headers)


async def _invalid_code(request: Request, exc: InvalidOrExpiredCode):
    return error_response(request, 401, INVALID_CODE_MESSAGE)


async def _unauthenticated(request: Request, exc: Unauthenticated):
    logger.info("Authentication failed on %s: %s", request.url.path, exc.reason)
    return error_response(request, 401, UNAUTHENTICATED_MESSAGE)


async def _tmdb_error(request: Request, exc: TMDBError):
    logger.warning("TMDB failure on %s: %s", request.url.path, exc)
    if exc.status_code == 404:
        return error_response(request, 404, NOT_FOUND_MESSAGE)
    return error_response(request, 502, UPSTREAM_MESSAGE)


async def _http_error(request: Request, exc: StarletteHTTPException):
    return error_response(request, exc.status_code, str(exc.detail))


async def _validation_error(request: Request, exc: RequestValidationError):
    return error_response(request, 422, "Invalid request", details=jsonable_encoder(exc.errors()))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(InvalidOrExpiredCode, _invalid_code)
    app.add_exception_handler(Unauthenticated, _unauthenticated)
    app.add_exception_handler(TMDBError, _tmdb_error)
    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(RequestValidationError, _validation_error)
