from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager
from functools import lru_cache

from loguru import logger
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from arivom.db.tables import Base
from config import get_settings


@lru_cache(maxsize=4)
def get_engine(database_url: str | None = None) -> Engine:
    """Get (and cache) the engine for a database URL, defaulting to settings."""
    settings = get_settings()
    url = database_url or settings.database_url
    return create_engine(url, echo=settings.log_level == "DEBUG", pool_pre_ping=True)


def make_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def init_db(engine: Engine | None = None) -> None:
    """Initialize database tables."""
    engine = engine or get_engine()
    Base.metadata.create_all(bind=engine)
    logger.info(f"Database tables initialized ({engine.url.render_as_string(hide_password=True)})")


@contextmanager
def session_scope(factory: sessionmaker[Session] | None = None) -> Generator[Session, None, None]:
    """Provide a transactional scope around a series of operations."""
    factory = factory or make_session_factory(get_engine())
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:  # Intentionally broad - rollback on any error before re-raising
        session.rollback()
        raise
    finally:
        session.close()
