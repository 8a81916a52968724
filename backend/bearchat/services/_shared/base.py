# bearchat/services/_shared/base.py
from __future__ import annotations

from datetime import UTC, datetime, timedelta

from bearchat.core import errors as api_errors
from bearchat.services._shared.errors import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DependencyError,
    HashingFailed,
    NotFoundError,
    ServiceError,
    UserNotFound,
)
from bearchat.uow.sqlalchemy_uow import (
    SQLAlchemyReadOnlyUnitOfWork,
    SQLAlchemyUnitOfWork,
)


def now_utc() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from databases without tz support."""
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def is_older_than(issued_at: datetime | None, ttl: timedelta | None, *, now: datetime) -> bool:
    """
    Tell whether a flow token issued at ``issued_at`` has outlived ``ttl``.

    ``ttl=None`` disables expiry. A token without an issue timestamp only
    expires when a TTL is configured.
    """
    if ttl is None:
        return False
    if issued_at is None:
        return True
    return as_utc(issued_at) + ttl < now


class BaseService:
    """
    Shared plumbing for the credential services.

    Subclasses open a unit of work per use case (``ro_uow`` for lookups,
    ``rw_uow`` for writes) and raise :class:`ServiceError` subclasses, which
    :meth:`translate_exceptions` turns into HTTP errors.
    """

    # -------------------------- UoW helpers ---------------------------------

    def rw_uow(self) -> SQLAlchemyUnitOfWork:
        """
        Create a read-write Unit of Work.

        :returns: Read-write UoW instance.
        :rtype: SQLAlchemyUnitOfWork
        """
        return SQLAlchemyUnitOfWork()

    def ro_uow(self, *, enforce_db_readonly: bool = True) -> SQLAlchemyReadOnlyUnitOfWork:
        """
        Create a read-only Unit of Work.

        :param enforce_db_readonly: Apply ``SET TRANSACTION READ ONLY`` when supported.
        :type enforce_db_readonly: bool
        :returns: Read-only UoW instance.
        :rtype: SQLAlchemyReadOnlyUnitOfWork
        """
        return SQLAlchemyReadOnlyUnitOfWork(enforce_db_readonly=enforce_db_readonly)

    # -------------------------- Error handling ------------------------------

    @staticmethod
    def translate_exceptions(exc: ServiceError) -> api_errors.APIError:
        """
        Map service-level errors to API-level (HTTP) errors.

        Collaborator and hashing failures are reported with a generic message;
        their details stay in the logs.

        :param exc: Exception raised within a service.
        :type exc: ServiceError
        :returns: Translated exception ready to be rendered.
        :rtype: bearchat.core.errors.APIError
        """
        # Unknown usernames on signin look like a bad password (no enumeration).
        if isinstance(exc, UserNotFound):
            return api_errors.Unauthorized("Invalid username or password")

        if isinstance(exc, ConflictError):
            return api_errors.Conflict(str(exc))

        if isinstance(exc, AuthenticationError):
            return api_errors.Unauthorized(str(exc) or "Unauthorized")

        if isinstance(exc, AuthorizationError):
            return api_errors.Forbidden(str(exc) or "Forbidden")

        if isinstance(exc, NotFoundError):
            return api_errors.NotFound(str(exc))

        if isinstance(exc, DependencyError):
            return api_errors.ServiceUnavailable()

        if isinstance(exc, HashingFailed):
            return api_errors.InternalError()

        # ValidationError and any other ServiceError → 400 Bad Request
        return api_errors.APIError(
            message=str(exc) or "Bad request",
            status_code=400,
            code="bad_request",
        )
