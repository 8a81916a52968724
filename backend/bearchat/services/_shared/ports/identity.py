from __future__ import annotations

from typing import Protocol

from bearchat.services._shared.errors import Unauthenticated


class IdentityResolver(Protocol):
    """
    Strategy extracting the caller's user id from a presented session token.

    The production implementation is
    :class:`bearchat.services.identity.service.SessionValidator`; tests swap
    in :class:`StaticIdentityResolver` through the app extensions.
    """

    def identify(self, token: str | None) -> str: ...


class StaticIdentityResolver(IdentityResolver):
    """Resolve every non-empty token to one fixed user id."""

    def __init__(self, user_id: str) -> None:
        self.user_id = user_id

    def identify(self, token: str | None) -> str:
        if not token:
            raise Unauthenticated()
        return self.user_id
