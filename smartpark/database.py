# smartpark/database.py
"""
Database engine construction, session management, table creation and the
unit-of-work helper every mutation goes through.

Nothing here is created at import time: the process entry point
(smartpark.main.create_app or a script) builds the engine and session factory
and hands sessions to the services.
"""

from typing import Callable, Optional, TypeVar

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, OperationalError, TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.pool import StaticPool

from smartpark.config import settings
from smartpark.errors import Conflict, StoreUnavailable
from smartpark.utils.logger import get_logger

logger = get_logger(__name__)

Base = declarative_base()

T = TypeVar("T")


def build_engine(database_url: Optional[str] = None) -> Engine:
    """Create an engine with bounded waits on pool checkout, statements and row locks."""
    url = database_url or settings.DATABASE_URL

    if url.startswith("sqlite"):
        kwargs = {
            "connect_args": {
                "check_same_thread": False,
                "timeout": settings.DB_LOCK_TIMEOUT_MS / 1000,   # busy timeout (seconds)
            },
        }
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool   # one shared in-memory DB
        return create_engine(url, **kwargs)

    connect_args = {}
    if url.startswith("postgresql"):
        connect_args["options"] = (
            f"-c statement_timeout={settings.DB_STATEMENT_TIMEOUT_MS} "
            f"-c lock_timeout={settings.DB_LOCK_TIMEOUT_MS}"
        )

    return create_engine(
        url,
        pool_pre_ping=True,          # Auto-reconnect if DB connection drops
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT_SECONDS,
        connect_args=connect_args,
        echo=False,                  # Set True to log all SQL queries (debug only)
    )


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db(request: Request):
    """FastAPI dependency — yields a DB session from the app's factory and closes it after request."""
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def create_tables(engine: Engine):
    """
    Creates all DB tables. Safe to call multiple times.
    Import all models here so SQLAlchemy knows about them.
    """
    from smartpark.models.location import Location   # noqa
    from smartpark.models.slot import Slot           # noqa
    from smartpark.models.booking import Booking     # noqa
    from smartpark.models.alert import Alert         # noqa

    Base.metadata.create_all(bind=engine)


def atomic(db: Session, operation: Callable[[], T], retries: int = 0) -> T:
    """
    Run `operation` as one transaction: commit on success, roll back on any error.

    A StaleDataError means a versioned row (slot, location or booking) was
    changed by a concurrent transaction. The whole operation, including its
    reads and checks, is re-run up to `retries` more times before the caller
    gets a retryable Conflict.
    """
    attempt = 0
    while True:
        try:
            result = operation()
            db.commit()
            return result
        except StaleDataError as exc:
            db.rollback()
            if attempt >= retries:
                logger.warning(f"Write conflict persisted after {attempt + 1} attempt(s): {exc}")
                raise Conflict("Concurrent update on the same record, please retry") from exc
            attempt += 1
            logger.warning(f"Write conflict, retrying (attempt {attempt + 1}/{retries + 1})")
        except IntegrityError as exc:
            db.rollback()
            logger.warning(f"Integrity error rolled back: {exc.orig}")
            raise Conflict("Concurrent write violated a store constraint, please retry") from exc
        except (OperationalError, PoolTimeoutError) as exc:
            db.rollback()
            logger.error(f"Store unavailable, transaction rolled back: {exc}")
            raise StoreUnavailable("Store did not respond in time, please retry") from exc
        except Exception:
            db.rollback()
            raise
