# Overview: Service-layer transaction plumbing; one explicit unit of work per multi-step write.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from ..errors import PersistenceError, TransactionTimeoutError
from ..extensions import db


def bound_lock_waits(session, seconds: float) -> None:
    """
    Cap how long the next statements may wait on locks to `seconds`.

    SQLite: PRAGMA busy_timeout replaces the connection-wide busy timeout for
    this checkout (create_app restores the configured value on checkout).
    PostgreSQL: SET LOCAL only lasts until this transaction ends.
    """
    ms = max(int(seconds * 1000), 1)
    dialect = session.get_bind().dialect.name
    if dialect == "sqlite":
        session.execute(text(f"PRAGMA busy_timeout = {ms}"))
    elif dialect == "postgresql":
        session.execute(text(f"SET LOCAL statement_timeout = {ms}"))
        session.execute(text(f"SET LOCAL lock_timeout = {ms}"))


def begin_write_transaction(session, *, timeout_seconds: float | None = None) -> None:
    """
    Start the session's transaction as a writer.

    SQLite: BEGIN IMMEDIATE takes the write lock up front, so concurrent
    writers queue on the busy timeout instead of failing at commit.
    With timeout_seconds, waiting for the lock is bounded by it on both
    SQLite and PostgreSQL.
    """
    dialect = session.get_bind().dialect.name
    if dialect == "sqlite":
        if timeout_seconds is not None:
            bound_lock_waits(session, timeout_seconds)
        session.execute(text("BEGIN IMMEDIATE"))
    elif timeout_seconds is not None:
        bound_lock_waits(session, timeout_seconds)


class UnitOfWork:
    """
    One transaction spanning every step of a multi-entity write.

    Usage:
        with UnitOfWork(timeout_seconds=10, label="sale") as uow:
            ...            # lookups, conditional updates, inserts
            uow.check_deadline()
            uow.commit()

    Leaving the block without a successful commit() rolls back exactly once,
    whatever the exit path. Storage exceptions escaping the block are
    translated to TransactionTimeoutError (budget exhausted) or
    PersistenceError (anything else) so callers never see driver messages.
    """

    def __init__(self, *, timeout_seconds: float, label: str = "unit of work", session=None):
        self.session = session if session is not None else db.session()
        self.timeout_seconds = timeout_seconds
        self.label = label
        self.committed = False
        self._deadline: float | None = None

    def __enter__(self) -> "UnitOfWork":
        # Discard whatever the caller left pending; only this block may write.
        self.session.rollback()
        for obj in list(self.session.new) + list(self.session.deleted):
            self.session.expunge(obj)
        self.session.expire_all()
        self._deadline = time.monotonic() + self.timeout_seconds
        try:
            begin_write_transaction(self.session, timeout_seconds=self.timeout_seconds)
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise self._translate(exc) from exc
        return self

    @property
    def remaining_seconds(self) -> float:
        if self._deadline is None:
            return self.timeout_seconds
        return self._deadline - time.monotonic()

    def expired(self) -> bool:
        return self.remaining_seconds <= 0

    def check_deadline(self) -> None:
        if self.expired():
            raise TransactionTimeoutError(
                f"{self.label} exceeded its {self.timeout_seconds:g}s budget; retry the whole request",
                details={"timeout_seconds": self.timeout_seconds},
            )
        bound_lock_waits(self.session, self.remaining_seconds)

    def commit(self) -> None:
        self.check_deadline()
        self.session.commit()
        self.committed = True

    def __exit__(self, exc_type, exc, tb) -> bool:
        if not self.committed:
            self.session.rollback()
        if exc is not None and isinstance(exc, SQLAlchemyError):
            raise self._translate(exc) from exc
        return False

    def _translate(self, exc: SQLAlchemyError):
        if isinstance(exc, OperationalError) and (self.expired() or _is_timeout(exc)):
            current_app.logger.warning("%s timed out: %s", self.label, exc)
            return TransactionTimeoutError(
                f"{self.label} exceeded its {self.timeout_seconds:g}s budget; retry the whole request",
                details={"timeout_seconds": self.timeout_seconds},
            )
        current_app.logger.error("%s failed in storage", self.label, exc_info=exc)
        return PersistenceError(f"Failed to persist {self.label}; nothing was saved, retry the whole request")


def _is_timeout(exc: OperationalError) -> bool:
    message = str(getattr(exc, "orig", exc)).lower()
    return (
        "database is locked" in message
        or "statement timeout" in message
        or "lock timeout" in message
        or "canceling statement" in message
    )
