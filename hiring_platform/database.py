"""Database connection and session management"""

from contextlib import contextmanager
from typing import Generator, Iterator, Optional
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from hiring_platform.config import settings

# Base class for all models
Base = declarative_base()

_engine: Optional[Engine] = None
SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False)


def configure_engine(database_url: Optional[str] = None, **engine_kwargs) -> Engine:
    """
    Build the engine and bind the session factory to it.

    Called lazily on first use with the configured database URL; tests and
    scripts call it directly to point the application at another database.
    """
    global _engine

    url = database_url or settings.database_url
    if not engine_kwargs and not url.startswith("sqlite"):
        engine_kwargs = {
            "pool_pre_ping": True,
            "pool_size": settings.database_pool_size,
            "max_overflow": settings.database_max_overflow,
        }

    _engine = create_engine(url, echo=settings.database_echo, **engine_kwargs)
    SessionLocal.configure(bind=_engine)
    return _engine


def get_engine() -> Engine:
    """Return the application engine, creating it on first use"""
    if _engine is None:
        return configure_engine()
    return _engine


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency that provides a database session.

    Usage:
        @router.get("/items")
        def get_items(db: Session = Depends(get_db)):
            return db.execute(select(Item)).scalars().all()
    """
    get_engine()
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@contextmanager
def transaction(db: Session) -> Iterator[None]:
    """
    Run a block atomically on a session.

    Inside an outer transaction the block gets a savepoint, so a failure
    discards only what the block wrote.
    """
    if db.in_transaction():
        with db.begin_nested():
            yield
    else:
        with db.begin():
            yield
