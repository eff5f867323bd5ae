"""Database engine and helpers.

This module builds the SQLModel/SQLAlchemy engine from the configured
`DATABASE_URL` and provides the small helpers used by the application,
the health checks and tests. The engine itself is owned by the container
(`"engine"` singleton) rather than living at module level.
"""

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine

from . import models  # noqa: F401  (registers tables on SQLModel.metadata)


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """Create an engine; SQLite URLs get the thread-sharing flag."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(database_url, echo=echo, connect_args=connect_args)


def create_db_and_tables(engine: Engine) -> None:
    """Create database tables using SQLModel metadata.

    Intended for local development and tests; production deployments
    should rely on a proper migration tool (alembic) instead.
    """
    SQLModel.metadata.create_all(engine)


def ping_database(engine: Engine) -> None:
    """Run `SELECT 1`; any driver error propagates to the caller."""
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
