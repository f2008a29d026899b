"""Database session management."""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from chainhook_indexer.config import Config

# Global engine instance (singleton)
_engine: Engine | None = None
_SessionLocal: sessionmaker[Session] | None = None


def _is_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///") or ":memory:" in url or "mode=memory" in url


def _build_engine(config: Config) -> Engine:
    if _is_memory_sqlite(config.db_url):
        # Tests only: the database lives in a single connection, so every
        # session shares it and concurrent writers are serialized by SQLite
        return create_engine(
            config.db_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=False,
        )

    if config.db_url.startswith("sqlite"):
        # A pooled connection is checked out by one thread at a time
        return create_engine(
            config.db_url,
            connect_args={"check_same_thread": False},
            echo=False,
        )

    return create_engine(
        config.db_url,
        pool_size=config.db_pool_size,
        max_overflow=0,  # Hard ceiling on open connections
        pool_timeout=config.db_pool_timeout_seconds,
        pool_recycle=config.db_pool_recycle_seconds,
        pool_pre_ping=True,  # Verify connections before using
        echo=False,  # Set to True for SQL debugging
    )


def init_db(config: Config) -> None:
    """Initialize database connection pool.

    Args:
        config: Configuration object with db_url and pool settings
    """
    global _engine, _SessionLocal

    if _engine is not None:
        return  # Already initialized

    _engine = _build_engine(config)

    _SessionLocal = sessionmaker(
        bind=_engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


def close_db() -> None:
    """Dispose of the connection pool so init_db() can be called again."""
    global _engine, _SessionLocal

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None


def get_engine() -> Engine:
    """Get the global database engine.

    Returns:
        SQLAlchemy Engine instance

    Raises:
        RuntimeError: If database not initialized
    """
    if _engine is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return _engine


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """Get a database session with context manager.

    Commits on a clean exit, rolls back and re-raises otherwise.

    Yields:
        SQLAlchemy Session

    Example:
        with get_session() as session:
            # Use session
            pass
    """
    if _SessionLocal is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")

    session = _SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
