# src/database.py
import logging
import time
from typing import Callable, Generator, TypeVar

from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

connect_args = {}
engine_kwargs = {"pool_pre_ping": True}
if settings.DATABASE_URL.startswith("sqlite"):
    # SQLite needs this flag for multi-threaded FastAPI usage
    connect_args = {"check_same_thread": False}
    if settings.DATABASE_URL in ("sqlite://", "sqlite:///:memory:"):
        engine_kwargs["poolclass"] = StaticPool

engine = create_engine(settings.DATABASE_URL, connect_args=connect_args, **engine_kwargs)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class _ModelBase:
    # models keep plain annotations next to Column() definitions
    __allow_unmapped__ = True


Base = declarative_base(cls=_ModelBase)


def init_db() -> None:
    """Create all tables for every registered model."""
    import auth.models  # noqa: F401
    import profiles.models  # noqa: F401
    import subscription.models  # noqa: F401
    import catalog.models  # noqa: F401
    import papers.models  # noqa: F401
    Base.metadata.create_all(bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Yield a SQLAlchemy session and close it when the request is done."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def retry_read(db: Session, fetch: Callable[[], T], label: str = "read") -> T:
    """Run a read-only query with a fixed number of attempts and linear backoff.

    Writes are never retried; only wrap idempotent selects with this.
    """
    attempts = settings.READ_RETRY_ATTEMPTS
    for attempt in range(1, attempts + 1):
        try:
            return fetch()
        except OperationalError as e:
            if attempt == attempts:
                logger.error(f"{label} failed after {attempts} attempts: {str(e)}")
                raise
            logger.warning(f"{label} attempt {attempt} failed, retrying...")
            db.rollback()
            time.sleep(settings.READ_RETRY_DELAY * attempt)
