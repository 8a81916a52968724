"""
Units of work over the Flask-scoped SQLAlchemy session.

``SQLAlchemyUnitOfWork`` backs the conditional writes of the flows;
``SQLAlchemyReadOnlyUnitOfWork`` backs lookups (signin, the pre-checks of
signup, reset confirmation) and refuses anything that would write.
"""

from __future__ import annotations

import logging
import re
from contextlib import suppress

from sqlalchemy import event, text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import InvalidRequestError, SQLAlchemyError
from sqlalchemy.orm import Session, SessionTransaction

from bearchat.core.extensions import db
from bearchat.repositories import CredentialRepository
from bearchat.uow.base import UnitOfWork

logger = logging.getLogger(__name__)

#: Dialects that understand ``SET TRANSACTION READ ONLY``.
READ_ONLY_DIALECTS = frozenset({"postgresql", "mysql", "mariadb"})

_WRITE_STATEMENT = re.compile(
    r"^\s*(insert|update|delete|merge|replace|upsert|alter|create|drop|truncate)\b",
    re.IGNORECASE,
)


class SQLAlchemyRepositoryContainer:
    """Expose the credential repository bound to one session."""

    def __init__(self, *, session: Session) -> None:
        self.session = session
        self.credentials = CredentialRepository(session=self.session)


class SQLAlchemyUnitOfWork(SQLAlchemyRepositoryContainer, UnitOfWork):
    """
    Read-write scope: commit on clean exit, roll back on any exception.

    Conditional updates executed inside the scope report their rowcount, so
    a flow that lost a race raises before the commit and nothing is kept.
    """

    def __init__(self) -> None:
        super().__init__(session=db.session)

    def __enter__(self) -> SQLAlchemyUnitOfWork:
        # The session autobegins on the first statement.
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.rollback()
            return
        try:
            self.commit()
        except Exception:
            self.rollback()
            raise

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


class _WriteGuard:
    """
    Event listeners that turn any write attempt into a ``RuntimeError``.

    Two layers: the ORM ``before_flush`` hook catches pending objects, and
    ``before_cursor_execute`` on the connection catches textual DML/DDL.
    """

    def __init__(self, session: Session, connection: Connection) -> None:
        self.session = session
        self.connection = connection
        self.active = False

    def _on_flush(self, session, flush_context, instances) -> None:
        if session.new or session.dirty or session.deleted:
            raise RuntimeError(
                "Read-only UnitOfWork: ORM flush blocked (new/dirty/deleted objects present)."
            )

    def _on_execute(self, conn, cursor, statement, parameters, context, executemany) -> None:
        match = _WRITE_STATEMENT.match(statement or "")
        if match:
            raise RuntimeError(
                f"Read-only UnitOfWork: SQL statement blocked: {match.group(1).upper()}"
            )

    def install(self) -> None:
        if self.active:
            return
        event.listen(self.session, "before_flush", self._on_flush)
        event.listen(self.connection, "before_cursor_execute", self._on_execute)
        self.active = True

    def remove(self) -> None:
        if not self.active:
            return
        with suppress(InvalidRequestError):
            event.remove(self.session, "before_flush", self._on_flush)
        with suppress(InvalidRequestError):
            event.remove(self.connection, "before_cursor_execute", self._on_execute)
        self.active = False


class SQLAlchemyReadOnlyUnitOfWork(SQLAlchemyRepositoryContainer, UnitOfWork):
    """
    Read-only scope over the Flask-scoped session.

    When no transaction is open the scope begins one, marks it ``READ ONLY``
    on dialects that support it, and rolls it back on exit. When one is
    already open (a test fixture, an enclosing request transaction) the scope
    joins it and leaves it alone. Write guards apply in both cases.

    :param enforce_db_readonly: Issue ``SET TRANSACTION READ ONLY`` when the
        scope owns the transaction.
    """

    def __init__(self, *, enforce_db_readonly: bool = True) -> None:
        super().__init__(session=db.session)
        self.enforce_db_readonly = enforce_db_readonly
        self._owned: SessionTransaction | None = None
        self._guard: _WriteGuard | None = None

    def __enter__(self) -> SQLAlchemyReadOnlyUnitOfWork:
        try:
            self._owned = self.session.begin()
        except InvalidRequestError:
            # Already inside a transaction: join it.
            self._owned = None

        connection = self.session.connection()
        if self._owned is not None and self.enforce_db_readonly:
            self._mark_read_only(connection)

        self._guard = _WriteGuard(self.session, connection)
        self._guard.install()
        return self

    def _mark_read_only(self, connection: Connection) -> None:
        if connection.dialect.name not in READ_ONLY_DIALECTS:
            return
        try:
            self.session.execute(text("SET TRANSACTION READ ONLY"))
        except SQLAlchemyError as exc:
            logger.warning("SET TRANSACTION READ ONLY failed (%s); guards only.", exc)

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if self._owned is not None:
                self.session.rollback()
        finally:
            self._owned = None
            if self._guard is not None:
                self._guard.remove()
                self._guard = None

    def commit(self) -> None:
        """
        :raises RuntimeError: always; this scope never writes.
        """
        raise RuntimeError("Read-only UnitOfWork does not allow commit().")

    def rollback(self) -> None:
        self.session.rollback()
