from __future__ import annotations

from datetime import UTC, datetime
from typing import Protocol


class TokenDenylistStore(Protocol):
    """
    Abstraction for early revocation of signed session tokens by ``jti``.

    Entries only need to live until the token's own expiry.

    ``revoke_jti`` is an atomic test-and-set: it returns ``True`` only for the
    call that added the entry, and ``False`` when the jti was already revoked
    or the token has already expired. Callers that consume a token once
    (refresh) rely on that to let exactly one of two concurrent uses through.
    """

    def is_revoked(self, jti: str) -> bool: ...
    def revoke_jti(self, *, jti: str, expires_at: datetime) -> bool: ...


class InMemoryDenylistStore(TokenDenylistStore):
    """Process-local denylist; only suitable for tests and single-process demos."""

    def __init__(self) -> None:
        self._revoked: dict[str, datetime] = {}

    def is_revoked(self, jti: str) -> bool:
        expires_at = self._revoked.get(jti)
        if expires_at is None:
            return False
        if expires_at <= datetime.now(UTC):
            self._revoked.pop(jti, None)
            return False
        return True

    def revoke_jti(self, *, jti: str, expires_at: datetime) -> bool:
        now = datetime.now(UTC)
        current = self._revoked.get(jti)
        if expires_at <= now or (current is not None and current > now):
            return False
        self._revoked[jti] = expires_at
        return True
