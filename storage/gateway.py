"""Persistence gateway: the single owner of database access for the services."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Mapping

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from utils.errors import DuplicateError, PersistenceError

logger = logging.getLogger(__name__)

_DEPTH_KEY = "gateway_transaction_depth"


@dataclass(frozen=True)
class WriteResult:
    identifier: Any
    rows_affected: int


class PersistenceGateway:
    """Run statements against the store with bound parameters only.

    Writes commit immediately unless they run inside :meth:`transaction`, in
    which case the outermost block commits. Unique-constraint violations
    surface as :class:`DuplicateError`, every other database failure as
    :class:`PersistenceError`; the session is rolled back in both cases.
    """

    def __init__(self, database: SQLAlchemy):
        self.db = database

    @property
    def session(self):
        return self.db.session

    def init_schema(self) -> None:
        """Create missing tables. Safe to call on every start."""

        try:
            self.db.create_all()
        except SQLAlchemyError as exc:
            logger.exception("Schema creation failed")
            raise PersistenceError("Could not initialise the database") from exc
        logger.info("Database schema ready")

    def close(self) -> None:
        self.db.session.remove()
        self.db.engine.dispose()
        logger.info("Database connection closed")

    @contextmanager
    def transaction(self) -> Iterator[None]:
        session = self.session
        depth = session.info.get(_DEPTH_KEY, 0)
        session.info[_DEPTH_KEY] = depth + 1
        try:
            yield
            if depth == 0:
                session.commit()
        except SQLAlchemyError as exc:
            raise self._translate(exc, "write") from exc
        except Exception:
            session.rollback()
            raise
        finally:
            session.info[_DEPTH_KEY] = depth

    def add(self, *instances: Any) -> WriteResult:
        """Insert new entities and return the first one's primary key."""

        with self.transaction():
            self.session.add_all(instances)
            self.session.flush()
        identifier = getattr(instances[0], "id", None) if instances else None
        return WriteResult(identifier=identifier, rows_affected=len(instances))

    def execute(self, statement, params: Mapping[str, Any] | None = None) -> WriteResult:
        """Execute a write statement (INSERT/UPDATE)."""

        with self.transaction():
            result = self.session.execute(statement, params or {})
        identifier = None
        if getattr(statement, "is_insert", False):
            primary_key = result.inserted_primary_key
            identifier = primary_key[0] if primary_key else None
        return WriteResult(identifier=identifier, rows_affected=result.rowcount)

    def fetch_one(self, statement, params: Mapping[str, Any] | None = None):
        return self._read(lambda: self.session.execute(statement, params or {}).scalars().first())

    def fetch_many(self, statement, params: Mapping[str, Any] | None = None) -> list:
        return self._read(lambda: list(self.session.execute(statement, params or {}).scalars().all()))

    def fetch_rows(self, statement, params: Mapping[str, Any] | None = None) -> list[dict]:
        """Return plain dict rows, for aggregate and projection queries."""

        return self._read(
            lambda: [dict(row) for row in self.session.execute(statement, params or {}).mappings()]
        )

    def scalar(self, statement, params: Mapping[str, Any] | None = None):
        return self._read(lambda: self.session.execute(statement, params or {}).scalar())

    def ping(self) -> bool:
        """Liveness probe used by the health endpoints."""

        return self.scalar(text("SELECT 1")) == 1

    def _read(self, fetch: Callable[[], Any]):
        try:
            return fetch()
        except SQLAlchemyError as exc:
            raise self._translate(exc, "read") from exc

    def _translate(self, exc: SQLAlchemyError, action: str) -> Exception:
        self.session.rollback()
        if isinstance(exc, IntegrityError) and "UNIQUE" in str(exc.orig).upper():
            logger.warning("Unique constraint rejected %s: %s", action, exc.orig)
            return DuplicateError("A record with the same unique value already exists")
        logger.error("Database %s failed", action, exc_info=exc)
        return PersistenceError("A database error occurred while processing the request")
