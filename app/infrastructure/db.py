"""Database infrastructure setup."""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.infrastructure.config.settings import settings

# Engine creation is deferred until a postgres-backed repository is used
_engine = None
_SessionLocal = None


def _get_engine() -> Engine:
    """Get or create the database engine."""
    global _engine
    if _engine is None:
        if not settings.database_url:
            raise ValueError("DATABASE_URL is required for database operations")
        if settings.database_url.startswith("sqlite"):
            # Single shared connection so an in-memory SQLite database survives across sessions
            _engine = create_engine(
                settings.database_url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
                echo=settings.debug_mode,
            )
        else:
            _engine = create_engine(
                settings.database_url,
                pool_pre_ping=True,
                echo=settings.debug_mode,  # Log SQL queries in debug mode
            )
    return _engine


def get_db_session() -> Session:
    """
    Get a database session.

    Returns:
        SQLAlchemy session instance
    """
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_get_engine())
    return _SessionLocal()


def create_schema() -> None:
    """Create all tables (development bootstrap; production uses Alembic)."""
    from app.adapters.outbound.persistence.models import Base

    Base.metadata.create_all(_get_engine())
