"""HTTP middleware: request context/logging and the global rate limit.

The request logger runs as a completion hook around `call_next`: it
assigns (or propagates) `X-Request-ID` and logs one structured line per
request once the response status is known.
"""

import logging
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .config import Settings
from .errors import RateLimitError
from .logging_config import log_event
from .responses import error_response
from .utils.rate_limit import InMemoryRateLimiter

logger = logging.getLogger("sga.api")


def _client(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def install_middleware(app: FastAPI, settings: Settings, rate_limiter: InMemoryRateLimiter) -> None:
    @app.middleware("http")
    async def rate_limit_middleware(request: Request, call_next):
        if request.url.path.startswith(settings.API_PREFIX):
            allowed, retry_after = rate_limiter.allow(
                _client(request), settings.RATE_LIMIT_MAX, settings.RATE_LIMIT_WINDOW_SECONDS
            )
            if not allowed:
                exc = RateLimitError(retry_after)
                log_event(logger, logging.WARNING, "rate_limited", {"client": _client(request), "path": request.url.path})
                return JSONResponse(
                    status_code=exc.status_code,
                    content=error_response(exc.code, exc.message, exc.details),
                    headers={"Retry-After": str(retry_after)},
                )
        return await call_next(request)

    # added last, so it is outermost and also logs rate-limited responses
    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next):
        req_id = request.headers.get("X-Request-ID", uuid.uuid4().hex)
        request.state.request_id = req_id
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
            logger.exception("request_failed request_id=%s method=%s path=%s duration_ms=%s",
                             req_id, request.method, request.url.path, elapsed_ms)
            raise
        response.headers["X-Request-ID"] = req_id
        elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
        principal = getattr(request.state, "user", None)
        log_event(logger, logging.INFO, "request_done", {
            "request_id": req_id,
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": elapsed_ms,
            "client": _client(request),
            "user_id": principal.user_id if principal else None,
        })
        return response
