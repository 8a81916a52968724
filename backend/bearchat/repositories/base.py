"""Shared plumbing for SQLAlchemy repositories.

A repository only reads and writes rows. Transaction boundaries belong to the
unit of work that owns the session, so nothing here commits or rolls back.
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar, cast

from sqlalchemy import select
from sqlalchemy.orm import InstrumentedAttribute, Session

from bearchat.core.extensions import db

M = TypeVar("M")


class BaseRepository(Generic[M]):
    """Session handling plus primary-key access for one mapped class.

    Subclasses set ``model`` and override :meth:`_pk_attr` when the key is
    not called ``id``.

    :param session: Session of the enclosing unit of work. ``None`` means the
        Flask-scoped ``db.session``.
    """

    model: type[M]

    def __init__(self, session: Session | None = None) -> None:
        self._session = session

    @property
    def session(self) -> Session:
        return self._session if self._session is not None else cast(Session, db.session)

    def _pk_attr(self) -> InstrumentedAttribute[Any] | None:
        return getattr(self.model, "id", None)

    def add(self, instance: M) -> M:
        """Stage ``instance`` and flush it.

        Flushing here makes unique-constraint violations surface at the call
        site as :class:`sqlalchemy.exc.IntegrityError`.
        """
        self.session.add(instance)
        self.flush()
        return instance

    def get(self, key: Any) -> M | None:
        pk = self._pk_attr()
        if pk is None:
            raise RuntimeError(f"{type(self).__name__} has no primary-key attribute")
        row = self.session.execute(select(self.model).where(pk == key)).scalars().first()
        return cast(M | None, row)

    def flush(self) -> None:
        self.session.flush()
