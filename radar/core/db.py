from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from radar.core.logging import get_logger
from radar.core.settings import get_settings

logger = get_logger(__name__)


class Base(DeclarativeBase):
    pass


# Global engine instance
_engine: Engine | None = None
_SessionLocal: sessionmaker | None = None


def _build_engine(database_url: str, debug: bool) -> Engine:
    if database_url.startswith("sqlite"):
        # Fetch cycles may run on worker threads
        connect_args = {"check_same_thread": False}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            return create_engine(
                database_url,
                connect_args=connect_args,
                poolclass=StaticPool,
                echo=debug,
            )
        return create_engine(database_url, connect_args=connect_args, echo=debug)

    settings = get_settings()
    return create_engine(
        database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        pool_pre_ping=True,
        echo=debug,
    )


def init_db(database_url: str | None = None, create_tables: bool = True) -> None:
    """Initialize database engine and session factory."""
    global _engine, _SessionLocal

    if _engine is not None:
        return

    settings = get_settings()
    _engine = _build_engine(database_url or settings.database_url, settings.debug)
    _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_engine)

    @event.listens_for(_engine, "connect")
    def log_connect(dbapi_conn, connection_record):
        logger.debug(f"New database connection established: {id(dbapi_conn)}")

    if create_tables:
        # Import models so their tables register on Base.metadata
        import radar.models.schema  # noqa: F401

        Base.metadata.create_all(bind=_engine)

    logger.info("Database initialized successfully")


def get_session_factory() -> sessionmaker:
    """Get the session factory, initializing if necessary."""
    if _SessionLocal is None:
        init_db()
    return _SessionLocal


@contextmanager
def get_db() -> Generator[Session, None, None]:
    """
    Context manager for database sessions.

    Usage:
        with get_db() as db:
            sources = db.query(Source).all()
    """
    SessionLocal = get_session_factory()
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_db_session() -> Generator[Session, None, None]:
    """FastAPI dependency yielding a session that is closed after the request."""
    SessionLocal = get_session_factory()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
