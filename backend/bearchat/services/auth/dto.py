# bearchat/services/auth/dto.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

ACCESS_COOKIE = "access_token"
REFRESH_COOKIE = "refresh_token"

#: Expiry stamped on cleared artifacts so clients drop them immediately.
EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class SignupIn:
    """
    Input DTO for signup.

    :param username: Requested public handle.
    :type username: str
    :param email: Contact email (normalized by the model).
    :type email: str
    :param password: Raw password; only its hash is stored.
    :type password: str
    """

    username: str
    email: str
    password: str


@dataclass(frozen=True, slots=True)
class SigninIn:
    """
    Input DTO for signin.

    :param username: Public handle.
    :type username: str
    :param password: Raw password candidate.
    :type password: str
    """

    username: str
    password: str


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class SessionArtifact:
    """
    Named client-side artifact (delivered as a cookie by the HTTP layer).

    :param name: ``access_token`` or ``refresh_token``.
    :param value: Encoded token, or ``""`` when clearing.
    :param expires_at: Expiry of the artifact (token expiry, or the epoch).
    """

    name: str
    value: str
    expires_at: datetime

    @property
    def cleared(self) -> bool:
        return not self.value


@dataclass(frozen=True, slots=True)
class SessionPair:
    """Access and refresh artifacts minted for one authentication."""

    user_id: str
    access: SessionArtifact
    refresh: SessionArtifact

    @property
    def artifacts(self) -> tuple[SessionArtifact, SessionArtifact]:
        return (self.access, self.refresh)


@dataclass(frozen=True, slots=True)
class SignupOut:
    """
    Output DTO for signup.

    :param session: Freshly issued session pair.
    :param verification_email_sent: ``False`` when the mailer failed; the
        account exists either way.
    """

    session: SessionPair
    verification_email_sent: bool


# ------------------------------ Config DTOs ------------------------------- #


@dataclass(frozen=True, slots=True)
class SessionConfig:
    """
    Session token emission configuration.

    :param access_expires: Access token lifetime.
    :param refresh_expires: Refresh token lifetime.
    :param issuer: ``iss`` claim value.
    :param require_verified: Refuse signin for unverified accounts.
    """

    access_expires: timedelta = timedelta(minutes=15)
    refresh_expires: timedelta = timedelta(days=7)
    issuer: str = "auth.service"
    require_verified: bool = False


@dataclass(frozen=True, slots=True)
class FlowTokenConfig:
    """
    Lifetimes of the opaque verification and reset tokens.

    ``None`` disables expiry for that token kind.
    """

    verification_ttl: timedelta | None = timedelta(hours=72)
    reset_ttl: timedelta | None = timedelta(minutes=60)
    link_base: str = "http://localhost:3000"
