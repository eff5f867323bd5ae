"""Top-level error boundary.

`register_error_handlers` installs the only code that maps an error kind
to an HTTP status and the JSON error envelope. Stack traces are logged
but never returned to the client.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .errors import AppError, ConflictError, DatabaseError, RateLimitError, RouteNotFoundError
from .logging_config import log_event
from .responses import error_response

logger = logging.getLogger("sga.errors")


def _log(request: Request, status_code: int, code: str, message: str, exc_info=None):
    payload = {
        "request_id": getattr(request.state, "request_id", ""),
        "method": request.method,
        "path": request.url.path,
        "status_code": status_code,
        "code": code,
        "message": message,
    }
    if status_code >= 500:
        log_event(logger, logging.ERROR, "request_error", payload, exc_info=exc_info)
    else:
        log_event(logger, logging.WARNING, "request_rejected", payload)


def app_error_response(request: Request, exc: AppError) -> JSONResponse:
    _log(request, exc.status_code, exc.code, exc.message)
    headers = None
    if isinstance(exc, RateLimitError):
        headers = {"Retry-After": str(exc.retry_after)}
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(exc.code, exc.message, exc.details),
        headers=headers,
    )


def _validation_details(exc: RequestValidationError) -> list:
    details = []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        details.append({"field": ".".join(loc), "message": err.get("msg", "invalid value")})
    return details


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError):
        return app_error_response(request, exc)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        # no route for this method + path (405 included)
        if exc.status_code in (404, 405):
            return app_error_response(request, RouteNotFoundError(request.method, request.url.path))
        code = f"HTTP_{exc.status_code}"
        _log(request, exc.status_code, code, str(exc.detail))
        return JSONResponse(status_code=exc.status_code, content=error_response(code, str(exc.detail)))

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        _log(request, 400, "VALIDATION_FAILED", "request validation failed")
        return JSONResponse(
            status_code=400,
            content=error_response("VALIDATION_FAILED", "Validation failed", _validation_details(exc)),
        )

    @app.exception_handler(IntegrityError)
    async def handle_integrity_error(request: Request, exc: IntegrityError):
        return app_error_response(request, ConflictError())

    @app.exception_handler(SQLAlchemyError)
    async def handle_database_error(request: Request, exc: SQLAlchemyError):
        _log(request, 500, DatabaseError.code, str(exc), exc_info=exc)
        return JSONResponse(status_code=500, content=error_response(DatabaseError.code, "Database error"))

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        _log(request, 500, "INTERNAL_SERVER_ERROR", repr(exc), exc_info=exc)
        message = "Internal server error"
        settings = getattr(request.app.state, "settings", None)
        if settings is not None and settings.ENV == "dev":
            message = str(exc) or message
        return JSONResponse(status_code=500, content=error_response("INTERNAL_SERVER_ERROR", message))
