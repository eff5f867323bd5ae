"""FastAPI application factory.

`create_app()` builds a fully wired application: settings, logging, the
IoC container, database tables, error handlers, middleware and routers.
Nothing is global and importing this module builds nothing; the
container lives on `app.state.container` so tests can build isolated
apps. Serve with `uvicorn sga.main:create_app --factory`.

Endpoints implemented (under API_PREFIX, default /api/v1):
- POST /auth/login, /auth/refresh-token, /auth/change-password, /auth/register
- GET /auth/me
- /users, /students, /courses, /groups, /enrollments
- /evaluations, /grades, /attendances, /rankings
- GET /health, /health/ready, /health/live
- GET /health (root, basic check)
"""

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings, get_settings
from .container import Container
from .database import create_db_and_tables
from .dependencies import USE_CASES, configure_dependencies, verify_wiring
from .error_handlers import register_error_handlers
from .logging_config import configure_logging
from .middleware import install_middleware
from .routes import (
    attendances,
    auth,
    courses,
    enrollments,
    evaluations,
    grades,
    groups,
    health,
    rankings,
    students,
    users,
)
from .utils.rate_limit import InMemoryRateLimiter

logger = logging.getLogger("sga.api")


def create_app(settings: Optional[Settings] = None, container: Optional[Container] = None, engine=None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(title="SGA Academic API", version=settings.APP_VERSION)

    # Wide-open CORS keeps local frontends working without extra config in dev.
    if settings.ALLOW_DEV_CORS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    container = configure_dependencies(container or Container(), settings, engine=engine)
    verify_wiring(container, ["settings", "engine", "authService", "healthController", *USE_CASES])
    create_db_and_tables(container.resolve("engine"))

    app.state.settings = settings
    app.state.container = container
    app.state.rate_limiter = InMemoryRateLimiter()

    register_error_handlers(app)
    install_middleware(app, settings, app.state.rate_limiter)

    for module in (auth, users, students, courses, groups, enrollments, evaluations, grades, attendances, rankings, health):
        app.include_router(module.router, prefix=settings.API_PREFIX)
    app.include_router(health.basic_router)

    logger.info("app_ready env=%s prefix=%s", settings.ENV, settings.API_PREFIX)
    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("sga.main:create_app", factory=True, host="0.0.0.0", port=8000, reload=False)
