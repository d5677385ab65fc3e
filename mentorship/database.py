import logging
from collections.abc import Iterator
from threading import Lock

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from mentorship.core import config

logger = logging.getLogger(__name__)

Base = declarative_base()


def build_engine(url: str) -> Engine:
    connect_args = {}
    if url.startswith("sqlite"):
        # Concurrent writers wait on the database lock instead of failing fast.
        connect_args = {"check_same_thread": False, "timeout": config.DB_BUSY_TIMEOUT_SECONDS}
    return create_engine(url, echo=config.DATABASE_ECHO, connect_args=connect_args)


engine = build_engine(config.DATABASE_URL)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

_schema_lock = Lock()
_schema_created = False


def init_db(bind: Engine | None = None) -> None:
    global _schema_created

    # Register every table on Base.metadata before create_all.
    from mentorship.models import availability, program, session, user  # noqa: F401

    if bind is not None:
        Base.metadata.create_all(bind=bind)
        return

    if _schema_created:
        return

    with _schema_lock:
        if _schema_created:
            return
        Base.metadata.create_all(bind=engine)
        logger.info("Database schema ready.")
        _schema_created = True


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
