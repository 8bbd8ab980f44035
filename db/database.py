"""SQLAlchemy store handle, declarative Base, and the per-request session dependency."""

from __future__ import annotations

import logging
import os
from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

logger = logging.getLogger(__name__)

DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./claims.db")


class Base(DeclarativeBase):
    pass


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """
    Owns the engine (and its connection pool) for the lifetime of the process.

    Opened once at application startup, disposed at shutdown, and handed to
    request handlers through app.state rather than imported as a global.
    """

    def __init__(self, url: str = DATABASE_URL) -> None:
        self.url = url
        self.engine: Engine | None = None
        self._session_factory: sessionmaker[Session] | None = None

    def open(self) -> "Database":
        if self.engine is not None:
            return self

        # SQLite needs check_same_thread=False for use across threads (FastAPI workers)
        connect_args = {"check_same_thread": False} if self.url.startswith("sqlite") else {}
        self.engine = create_engine(self.url, connect_args=connect_args)
        if self.url.startswith("sqlite"):
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)

        self._session_factory = sessionmaker(
            autocommit=False, autoflush=False, expire_on_commit=False, bind=self.engine
        )
        logger.info("Database opened: %s", self.engine.url.render_as_string(hide_password=True))
        return self

    def close(self) -> None:
        if self.engine is None:
            return
        self.engine.dispose()
        logger.info("Database closed")
        self.engine = None
        self._session_factory = None

    def session(self) -> Session:
        if self._session_factory is None:
            raise RuntimeError("Database is not open")
        return self._session_factory()

    def init_db(self) -> None:
        """Create all tables. Called once at application startup."""
        from db import models  # noqa: F401 — ensure models are registered on Base

        if self.engine is None:
            raise RuntimeError("Database is not open")
        Base.metadata.create_all(bind=self.engine)


def get_db(request: Request) -> Iterator[Session]:
    """FastAPI dependency: yield a DB session and close it after the request."""
    database: Database = request.app.state.database
    db = database.session()
    try:
        yield db
    finally:
        db.close()


if __name__ == "__main__":
    print("Creating database tables...")
    database = Database().open()
    database.init_db()
    print("✅ Database tables created successfully")
    print(f"   Database: {DATABASE_URL}")

    from sqlalchemy import inspect
    inspector = inspect(database.engine)
    tables = inspector.get_table_names()
    for table in tables:
        print(f"   Table: {table}")
    database.close()
