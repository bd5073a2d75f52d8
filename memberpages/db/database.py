"""Database engine and session factory."""

from typing import Any

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from memberpages.config import get_settings

settings = get_settings()


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """Create an engine suited to the database backend.

    SQLite gets a single shared connection when in memory, so every session
    sees the same tables. MySQL connections are recycled before the server's
    idle timeout and use utf8mb4 so page text in any script round-trips.

    Args:
        database_url: SQLAlchemy database URL.
        echo: Log emitted SQL.

    Returns:
        Engine: Configured engine.
    """
    kwargs: dict[str, Any] = {"echo": echo}

    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in database_url:
            kwargs["poolclass"] = StaticPool
    else:
        kwargs.update(pool_pre_ping=True, pool_size=5, max_overflow=10, pool_recycle=3600)
        if database_url.startswith("mysql") and "charset=" not in database_url:
            kwargs["connect_args"] = {"charset": "utf8mb4"}

    return create_engine(database_url, **kwargs)


engine = build_engine(settings.database_url, echo=settings.debug)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db() -> None:
    """Create missing tables on SQLite or in debug mode.

    Other deployments are expected to run the Alembic migrations.
    """
    from memberpages.db.models import Base

    if settings.debug or settings.database_url.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)
