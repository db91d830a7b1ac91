"""Database setup with SQLAlchemy."""
import logging
from datetime import datetime
from typing import Callable, Iterable, Tuple

from sqlalchemy import Column, DateTime, create_engine
from sqlalchemy.orm import DeclarativeBase, Query, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        return {
            "connect_args": {"check_same_thread": False},
            "poolclass": StaticPool,
        }
    return {
        "pool_pre_ping": True,
        "pool_size": 10,
        "max_overflow": 20,
    }


engine = create_engine(settings.database_url, **_engine_options(settings.database_url))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


class TimestampMixin:
    """created_at / updated_at columns."""
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class SoftDeleteMixin:
    """Rows are never removed; deletion sets ``deleted_at``.

    Live lookups go through :func:`live`. ``restore`` only clears the marker,
    callers re-validate uniqueness before calling it.
    """
    deleted_at = Column(DateTime, nullable=True, index=True)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def soft_delete(self, when: datetime | None = None) -> None:
        self.deleted_at = when or datetime.utcnow()

    def restore(self) -> None:
        self.deleted_at = None


def live(query: Query, model, include_deleted: bool = False) -> Query:
    """Filter a query down to non-deleted rows unless asked otherwise."""
    if include_deleted:
        return query
    return query.filter(model.deleted_at.is_(None))


def deleted_only(query: Query, model) -> Query:
    """Filter a query down to soft-deleted rows (restore lookups)."""
    return query.filter(model.deleted_at.is_not(None))


Step = Tuple[str, Callable[[Session], None]]


def run_atomically(db: Session, steps: Iterable[Step]) -> None:
    """Apply an ordered list of named state transitions as one unit of work.

    Steps run in the given order against the same session and are committed
    together. Any failure rolls every step back before re-raising.
    """
    applied = []
    try:
        for name, step in steps:
            step(db)
            db.flush()
            applied.append(name)
        db.commit()
    except Exception:
        logger.error(f"Unit of work rolled back after steps {applied}")
        db.rollback()
        raise
    logger.debug(f"Unit of work committed: {applied}")


def get_db():
    """Dependency for database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Create tables for all registered models."""
    import app.models  # noqa: F401  registers mappers
    Base.metadata.create_all(bind=engine)
