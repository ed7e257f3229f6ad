"""Storage handle, session and transaction management.

This module declares the SQLAlchemy declarative base and the
:class:`Storage` handle that owns the engine for the local store. The
handle is constructed explicitly and injected into every operation;
FastAPI routes receive it through the :func:`get_storage` dependency.
"""

import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .errors import StorageError, StorageNotInitializedError


logger = logging.getLogger(__name__)


Base = declarative_base()
"""Declarative base class for SQLAlchemy models."""


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA foreign_keys = ON")
    finally:
        cursor.close()


def create_storage_engine(url: str, echo: bool = False) -> Engine:
    """
    Build an engine for ``url`` with foreign-key enforcement enabled.

    SQLite connections are shared across FastAPI's worker threads, and an
    in-memory database is pinned to a single connection so every session
    sees the same tables.

    Args:
        url (str): SQLAlchemy database URL.
        echo (bool): Echo emitted SQL.

    Returns:
        Engine: Configured, not yet connected engine.
    """
    kwargs = {"echo": echo}
    is_sqlite = url.startswith("sqlite")
    if is_sqlite:
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in url or url.rstrip("/") == "sqlite:":
            kwargs["poolclass"] = StaticPool

    engine = create_engine(url, **kwargs)
    if is_sqlite:
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


class Storage:
    """
    Explicit handle to the local store.

    Lifecycle is ``open`` -> ``reset_schema`` (together: ``initialize``)
    -> ``close``. Until ``initialize`` succeeds every session request
    raises :class:`StorageNotInitializedError`.
    """

    def __init__(self, url: str, echo: bool = False, reset: bool = True):
        self.url = url
        self.echo = echo
        self.reset = reset
        self.engine: Engine | None = None
        self._session_factory: sessionmaker | None = None
        self._ready = False

    @property
    def is_initialized(self) -> bool:
        return self._ready

    def open(self) -> None:
        """
        Create the engine and verify the store can be reached.

        Raises:
            StorageError: If the store cannot be opened.
        """
        if self.engine is not None:
            return
        try:
            engine = create_storage_engine(self.url, echo=self.echo)
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            logger.error("Error opening database %s: %s", self.url, exc)
            raise StorageError(f"Failed to open database: {exc}") from exc

        self.engine = engine
        self._session_factory = sessionmaker(
            bind=engine,
            autoflush=False,
            expire_on_commit=False,
        )
        logger.info("Database opened: %s", self.url)

    def reset_schema(self) -> None:
        """
        Drop and recreate every table.

        This wipes all stored records; it runs on every start unless
        ``RESET_ON_STARTUP`` is disabled.
        """
        self._require_engine()
        from . import models  # noqa: F401  registers the tables on Base

        try:
            Base.metadata.drop_all(bind=self.engine)
            Base.metadata.create_all(bind=self.engine)
        except SQLAlchemyError as exc:
            logger.error("Error recreating tables: %s", exc)
            raise StorageError(f"Failed to recreate tables: {exc}") from exc
        logger.info("Tables recreated")

    def create_schema(self) -> None:
        """Create missing tables, keeping existing rows."""
        self._require_engine()
        from . import models  # noqa: F401

        try:
            Base.metadata.create_all(bind=self.engine)
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to create tables: {exc}") from exc

    def initialize(self, reset: bool | None = None) -> None:
        """
        Open the store and bring it to a known-good schema.

        Args:
            reset (bool | None): Drop existing tables before creating them;
                defaults to the value the handle was built with.

        Raises:
            StorageError: If the store cannot be opened or the schema
                cannot be created. The handle is left uninitialized.
        """
        if reset is None:
            reset = self.reset
        self._ready = False
        self.open()
        try:
            if reset:
                self.reset_schema()
            else:
                self.create_schema()
        except StorageError:
            self.close()
            raise
        self._ready = True

    def close(self) -> None:
        """Dispose of the engine; the handle must be initialized again."""
        self._ready = False
        if self.engine is not None:
            self.engine.dispose()
        self.engine = None
        self._session_factory = None

    def _require_engine(self) -> None:
        if self.engine is None:
            raise StorageNotInitializedError()

    @contextmanager
    def session(self) -> Iterator[Session]:
        """
        Provide a database session for read operations.

        Engine failures raised inside the block surface as
        :class:`StorageError`; the session is always closed.
        """
        if not self._ready:
            raise StorageNotInitializedError()

        db = self._session_factory()
        try:
            yield db
        except SQLAlchemyError as exc:
            logger.error("Database operation failed: %s", exc)
            raise StorageError(f"Database operation failed: {exc}") from exc
        finally:
            db.close()

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Provide a session wrapped in a single transaction.

        The transaction commits when the block exits normally and rolls
        back when it raises, whatever the exception type.
        """
        with self.session() as db:
            with db.begin():
                yield db

    def test_connection(self) -> bool:
        """Issue a trivial query to check the store is reachable."""
        with self.session() as db:
            ok = db.execute(text("SELECT 1 AS test")).scalar() == 1
        logger.debug("Database connection test passed")
        return ok


def get_storage(request: Request) -> Storage:
    """
    Return the storage handle attached to the application.

    A handle whose startup initialization failed is initialized again
    here, so requests recover once the store becomes available. This
    function is used as a FastAPI dependency and is overridden in tests.
    """

    storage = request.app.state.storage
    if not storage.is_initialized:
        try:
            storage.initialize()
        except StorageError:
            logger.warning("Database still unavailable: %s", storage.url)
    return storage
