from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

# Token subjects minted on every successful authentication.
ACCESS_SUBJECT = "access"
REFRESH_SUBJECT = "refresh"
SESSION_SUBJECTS = frozenset({ACCESS_SUBJECT, REFRESH_SUBJECT})


@dataclass(frozen=True, slots=True)
class SessionClaims:
    """
    Payload embedded in a stateless session token.

    :ivar user_id: Identifier of the authenticated credential.
    :ivar subject: ``"access"`` or ``"refresh"``.
    :ivar issuer: Issuing service name.
    :ivar issued_at: Unix epoch seconds.
    :ivar expires_at: Unix epoch seconds.
    :ivar jti: Optional random token id (only needed for denylisting).
    """

    user_id: str
    subject: str
    issuer: str
    issued_at: int
    expires_at: int
    jti: str | None = None

    @property
    def expires_at_dt(self) -> datetime:
        return datetime.fromtimestamp(self.expires_at, tz=UTC)


class TokenCodec(Protocol):
    """
    Port for signing and verifying :class:`SessionClaims`.

    ``verify`` raises :class:`~bearchat.services._shared.errors.Malformed`,
    :class:`~bearchat.services._shared.errors.InvalidSignature` or
    :class:`~bearchat.services._shared.errors.Expired`.
    """

    def issue(self, claims: SessionClaims) -> str: ...

    def verify(self, token: str) -> SessionClaims: ...
