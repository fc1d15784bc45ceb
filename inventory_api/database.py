from contextlib import contextmanager
from typing import Callable, Iterator
import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from inventory_api.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

if settings.DATABASE_URL.startswith("sqlite"):
    engine = create_engine(
        settings.DATABASE_URL,
        connect_args={"check_same_thread": False},
    )
else:
    # Connection pooling for server databases
    engine = create_engine(
        settings.DATABASE_URL,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,
    )

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

_DEPTH_KEY = "transaction_depth"
_CALLBACKS_KEY = "on_commit"


def get_db():
    """
    Dependency to get database session.
    Yields a database session and closes it after use.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """
    Scope a unit of work on ``db``.

    Scopes nest: only the outermost one commits, and it rolls back on any
    exception raised inside it (including a failing commit). Callbacks
    registered with :func:`on_commit` run after the outermost commit
    succeeds and are discarded on rollback.
    """
    depth = db.info.get(_DEPTH_KEY, 0)
    db.info[_DEPTH_KEY] = depth + 1
    try:
        yield db
        if depth == 0:
            db.commit()
    except Exception:
        if depth == 0:
            db.rollback()
            db.info.pop(_CALLBACKS_KEY, None)
        raise
    finally:
        db.info[_DEPTH_KEY] = depth

    if depth == 0:
        _run_on_commit(db)


def on_commit(db: Session, callback: Callable[[], None]) -> None:
    """Run ``callback`` once the enclosing transaction has committed."""
    if db.info.get(_DEPTH_KEY, 0) == 0:
        callback()
        return
    db.info.setdefault(_CALLBACKS_KEY, []).append(callback)


def _run_on_commit(db: Session) -> None:
    for callback in db.info.pop(_CALLBACKS_KEY, []):
        try:
            callback()
        except Exception as e:
            logger.warning(f"Post-commit callback {callback!r} failed: {e}")
