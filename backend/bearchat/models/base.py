"""Column mixins for persisted models."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, func
from sqlalchemy.orm import Mapped, mapped_column


class TimestampMixin:
    """Database-maintained ``created_at`` / ``updated_at`` (timezone-aware)."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )


class ReprMixin:
    """``<Class key=value>`` using the attribute named by ``__repr_key__``."""

    __repr_key__ = "id"

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.__repr_key__}={getattr(self, self.__repr_key__, None)}>"
