"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and should never import or depend
on Flask or HTTP. They are the stable contract between repositories, security
primitives and application services.

The translation to HTTP responses (RFC 7807) is handled by
``bearchat/core/errors.py`` via ``BaseService.translate_exceptions()``.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError


def violates(exc: IntegrityError, constraint_name: str, *, column: str | None = None) -> bool:
    """
    Check whether an IntegrityError originates from a specific constraint.

    PostgreSQL and MySQL include the constraint name in the message; SQLite
    only reports ``UNIQUE constraint failed: <table>.<column>``, hence the
    optional ``column`` fallback.

    Parameters
    ----------
    exc : IntegrityError
        The exception raised by SQLAlchemy during flush/commit.
    constraint_name : str
        The name of the database constraint to match (e.g., 'uq_credentials_email').
    column : str | None
        Qualified column (``table.column``) to match when the dialect omits
        constraint names.

    Returns
    -------
    bool
        True if the IntegrityError matches the given constraint.
    """
    message = str(exc.orig).lower() if exc.orig else ""
    if constraint_name.lower() in message:
        return True
    return column is not None and column.lower() in message


# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - They can be safely raised from repositories, adapters or domain logic.
    - ``BaseService.translate_exceptions`` maps each kind to one API error.
    """

    pass


class ValidationError(ServiceError):
    """Malformed input that passed schema parsing (e.g. an empty token)."""


@dataclass(slots=True)
class NotFoundError(ServiceError):
    """
    Raised when no record matches a lookup.

    :param entity: Entity name (e.g., "Credential").
    :type entity: str
    :param key: Identifier or search key.
    :type key: str | int
    """

    entity: str
    key: str | int

    def __str__(self) -> str:
        return f"{self.entity} not found: {self.key}"


@dataclass(slots=True)
class ConflictError(ServiceError):
    """
    Raised when a unique constraint or business rule conflict occurs.

    :param entity: Entity name (e.g., "Credential").
    :type entity: str
    :param detail: Short human-readable explanation.
    :type detail: str
    """

    entity: str
    detail: str

    def __str__(self) -> str:
        return f"Conflict on {self.entity}: {self.detail}"


class AuthenticationError(ServiceError):
    """The caller could not prove who they are (bad password, missing or bad token)."""


class AuthorizationError(ServiceError):
    """The caller is authenticated but does not own the targeted resource."""


class DependencyError(ServiceError):
    """A collaborator (store, mailer, cache) failed. Details are never shown to clients."""


class HashingFailed(ServiceError):
    """The password hasher could not produce or read a hash."""


# --------------------------------------------------------------------------- #
# Signup / signin
# --------------------------------------------------------------------------- #


class DuplicateUsername(ConflictError):
    def __init__(self, username: str) -> None:
        super().__init__("Credential", f"username already exists: {username}")


class DuplicateEmail(ConflictError):
    def __init__(self, email: str) -> None:
        super().__init__("Credential", f"email already exists: {email}")


class UserNotFound(NotFoundError):
    def __init__(self, username: str) -> None:
        super().__init__("Credential", username)


class InvalidPassword(AuthenticationError):
    def __init__(self, message: str = "Incorrect password") -> None:
        super().__init__(message)


class UnverifiedAccount(AuthenticationError):
    def __init__(self, message: str = "Email address has not been verified") -> None:
        super().__init__(message)


# --------------------------------------------------------------------------- #
# Session tokens
# --------------------------------------------------------------------------- #


class TokenError(AuthenticationError):
    """Base for stateless token verification failures."""


class Malformed(TokenError):
    def __init__(self, message: str = "Token is malformed") -> None:
        super().__init__(message)


class InvalidSignature(TokenError):
    def __init__(self, message: str = "Token signature is invalid") -> None:
        super().__init__(message)


class Expired(TokenError):
    def __init__(self, message: str = "Token has expired") -> None:
        super().__init__(message)


class Unauthenticated(AuthenticationError):
    def __init__(self, message: str = "Missing session token") -> None:
        super().__init__(message)


class Unauthorized(AuthenticationError):
    def __init__(self, message: str = "Invalid session token") -> None:
        super().__init__(message)


# --------------------------------------------------------------------------- #
# Verification / reset flows
# --------------------------------------------------------------------------- #


class TokenNotFound(NotFoundError):
    def __init__(self, key: str = "verification token") -> None:
        super().__init__("Credential", key)


class TokenExpired(TokenNotFound):
    def __init__(self, key: str = "verification token (expired)") -> None:
        super().__init__(key)


class EmailNotFound(NotFoundError):
    def __init__(self, email: str) -> None:
        super().__init__("Credential", email)


class InvalidResetPair(NotFoundError):
    def __init__(self, username: str) -> None:
        super().__init__("Credential", f"reset token for {username}")


class UpdateFailed(ConflictError):
    def __init__(self, detail: str = "reset token already consumed") -> None:
        super().__init__("Credential", detail)


# --------------------------------------------------------------------------- #
# Collaborators
# --------------------------------------------------------------------------- #


class MailerError(DependencyError):
    """Raised by Mailer adapters when a message cannot be handed off."""


class MailDeliveryFailed(DependencyError):
    def __init__(self, message: str = "Could not send email") -> None:
        super().__init__(message)


class StoreUnavailable(DependencyError):
    def __init__(self, message: str = "Credential store unavailable") -> None:
        super().__init__(message)
