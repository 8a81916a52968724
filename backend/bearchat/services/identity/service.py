"""
SessionValidator
================

Stateless check of a presented access token. Every service (auth, posts,
profiles) runs the same validator configured with the shared codec secret,
so a request is authenticated without calling back into the auth service.
"""

from __future__ import annotations

import logging

from bearchat.services._shared.errors import (
    AuthorizationError,
    TokenError,
    Unauthenticated,
    Unauthorized,
)
from bearchat.services._shared.ports import (
    ACCESS_SUBJECT,
    IdentityResolver,
    TokenCodec,
    TokenDenylistStore,
)
from bearchat.services._shared.policies.common import is_owner

logger = logging.getLogger(__name__)


class SessionValidator(IdentityResolver):
    """
    Resolve access tokens to user ids.

    :param codec: Codec configured with the shared secret.
    :param denylist: Optional early-revocation store.
    """

    def __init__(
        self,
        *,
        codec: TokenCodec,
        denylist: TokenDenylistStore | None = None,
    ) -> None:
        self.codec = codec
        self.denylist = denylist

    def identify(self, token: str | None) -> str:
        """
        Return the user id carried by a valid access token.

        :param token: Encoded access token, or ``None`` when absent.
        :returns: The authenticated user id.
        :raises Unauthenticated: If no token was presented.
        :raises Unauthorized: If the token is invalid, expired, not an access
            token, or revoked.
        """
        if not token:
            raise Unauthenticated()
        try:
            claims = self.codec.verify(token)
        except TokenError as exc:
            logger.info("identify rejected: %s", exc)
            raise Unauthorized(str(exc)) from exc

        if claims.subject != ACCESS_SUBJECT:
            raise Unauthorized("Access token required")
        if self.denylist is not None and claims.jti and self.denylist.is_revoked(claims.jti):
            raise Unauthorized("Token has been revoked")
        return claims.user_id

    def ensure_owner(self, token: str | None, owner_id: str) -> str:
        """
        Identify the caller and require them to own ``owner_id``'s resource.

        :returns: The authenticated user id.
        :raises AuthorizationError: If the caller is someone else.
        """
        user_id = self.identify(token)
        if not is_owner(actor_id=user_id, owner_id=owner_id):
            raise AuthorizationError("You can only access your own resources.")
        return user_id
