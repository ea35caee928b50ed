from __future__ import annotations

import os
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from config.settings import settings
from persistence.models import Base


def _get_db_url(db_path: str) -> str:
    os.makedirs(os.path.dirname(db_path) if os.path.dirname(db_path) else ".", exist_ok=True)
    return f"sqlite:///{db_path}"


def _build_engine(db_path: str) -> Engine:
    # check_same_thread=False: batch score reads run on worker threads
    return create_engine(
        _get_db_url(db_path),
        connect_args={"check_same_thread": False},
        echo=settings.db_echo,
    )


engine = _build_engine(settings.sqlite_db_path)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


def use_database(db_path: str) -> Engine:
    """Point the module-level engine and session factory at another SQLite file."""
    global engine, SessionLocal
    engine.dispose()
    engine = _build_engine(db_path)
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    return engine


def init_db() -> None:
    """Create all tables if they don't exist."""
    Base.metadata.create_all(bind=engine)


@contextmanager
def get_db_session() -> Iterator[Session]:
    """Context manager for database sessions with auto-rollback on error."""
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
