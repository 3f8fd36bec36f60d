"""
Database engine management for the database storage backend.

Unlike a module-level engine, the engine here is created on demand by the
availability store when the connection supervisor connects, so the process
starts (and binds its port) even when the database is unreachable.

Environment variables:
    - DATABASE_URL: SQLAlchemy connection URL (required for STORAGE_BACKEND=database)
"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool


def create_db_engine(database_url: str, connect_timeout: float = None) -> Engine:
    """
    Create a SQLAlchemy engine for ``database_url``.

    In-memory SQLite URLs get a StaticPool so every session shares the same
    database (used by tests and the demo mode).
    """
    if not database_url:
        raise ValueError("DATABASE_URL is required for the database storage backend")

    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url or database_url == "sqlite://":
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, **kwargs)

    connect_args = {}
    if connect_timeout and database_url.startswith("postgresql"):
        connect_args["connect_timeout"] = max(1, int(connect_timeout))

    return create_engine(
        database_url,
        pool_pre_ping=True,
        echo=False,
        connect_args=connect_args,
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
    )
