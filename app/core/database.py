import logging
from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from app.core.config import get_settings

logger = logging.getLogger(__name__)

Base = declarative_base()


def normalize_database_url(db_url: str) -> str:
    # Render provides 'postgres://', but SQLAlchemy requires 'postgresql://'
    if db_url and db_url.startswith("postgres://"):
        db_url = db_url.replace("postgres://", "postgresql://", 1)
    return db_url


class Database:
    """Store-access handle: one engine plus a session factory.

    Built explicitly by the application (or a test) and handed to request
    handlers through the ``get_db`` dependency.
    """

    def __init__(self, db_url: str, **engine_kwargs):
        db_url = normalize_database_url(db_url)
        if db_url.startswith("sqlite"):
            # "check_same_thread" is ONLY for SQLite
            engine_kwargs.setdefault("connect_args", {"check_same_thread": False})
        self.url = db_url
        self.engine: Engine = create_engine(db_url, **engine_kwargs)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)
        self.session_factory = sessionmaker(
            autocommit=False, autoflush=False, bind=self.engine
        )

    def create_all(self) -> None:
        # import models so every table is registered on Base.metadata
        from app.models import offer, product, user  # noqa: F401

        Base.metadata.create_all(bind=self.engine)
        logger.info("Database schema ready (%s)", self.engine.url.render_as_string(hide_password=True))

    def dispose(self) -> None:
        self.engine.dispose()

    def session(self) -> Iterator[Session]:
        db: Session = self.session_factory()
        try:
            yield db
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores ON DELETE CASCADE unless foreign keys are switched on
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_database() -> Database:
    return Database(get_settings().database_url)


def get_db(request: Request) -> Iterator[Session]:
    """Per-request session from the Database attached to the running app."""
    database: Database = request.app.state.database
    yield from database.session()
