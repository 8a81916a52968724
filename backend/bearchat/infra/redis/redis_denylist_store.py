from datetime import UTC, datetime
from typing import cast

import redis  # type: ignore[import-untyped]
from redis.exceptions import RedisError  # type: ignore[import-untyped]

from bearchat.services._shared.errors import StoreUnavailable


class RedisTokenDenylistStore:
    """
    Denylist of revoked session tokens keyed by jti.

    Each entry expires together with the token it revokes, so the keyspace
    never outgrows the set of still-valid tokens.
    """

    def __init__(self, r: redis.Redis, *, prefix: str = "deny:session:"):
        self.r = r
        self.prefix = prefix

    def _k(self, jti: str) -> str:
        return f"{self.prefix}{jti}"

    def is_revoked(self, jti: str) -> bool:
        try:
            return cast(int, self.r.exists(self._k(jti))) == 1
        except RedisError as exc:
            raise StoreUnavailable("Token denylist unavailable") from exc

    def revoke_jti(self, *, jti: str, expires_at: datetime) -> bool:
        """Deny ``jti`` until ``expires_at``; ``True`` only if this call added it."""
        now = datetime.now(UTC).timestamp()
        ttl = int(expires_at.timestamp() - now)
        if ttl <= 0:
            # already expired; nothing to deny
            return False
        try:
            # SET NX: of two concurrent revocations only one gets a truthy reply.
            return bool(self.r.set(self._k(jti), "1", ex=ttl, nx=True))
        except RedisError as exc:
            raise StoreUnavailable("Token denylist unavailable") from exc
