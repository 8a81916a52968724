# bearchat/services/verification/service.py
from __future__ import annotations

import logging
from datetime import timedelta

from bearchat.core.logger import log_event
from bearchat.services._shared.base import BaseService, is_older_than, now_utc
from bearchat.services._shared.errors import TokenExpired, TokenNotFound, ValidationError

logger = logging.getLogger(__name__)


class VerificationFlow(BaseService):
    """
    Consume the email verification token minted at signup.

    The token is single use: the write that marks the account verified also
    clears it, and is conditional on the token value.

    :param ttl: Maximum token age; ``None`` disables expiry.
    """

    def __init__(self, *, ttl: timedelta | None = timedelta(hours=72)) -> None:
        super().__init__()
        self.ttl = ttl

    def confirm(self, token: str | None) -> None:
        """
        Mark the credential holding ``token`` as verified.

        :param token: Opaque verification token from the email link.
        :raises ValidationError: If the token is empty.
        :raises TokenNotFound: If no pending verification matches, including
            when a concurrent request consumed it first.
        :raises TokenExpired: If the token is older than the configured TTL.
        """
        if not token:
            raise ValidationError("Verification token is required")

        with self.rw_uow() as uow:
            credential = uow.credentials.find_by_verification_token(token)
            if credential is None:
                raise TokenNotFound()
            user_id = credential.user_id
            if is_older_than(credential.verification_token_issued_at, self.ttl, now=now_utc()):
                log_event(logger, "verify.expired", level=logging.WARNING, user_id=user_id)
                raise TokenExpired()

            if uow.credentials.update_verified(token) == 0:
                raise TokenNotFound()

        log_event(logger, "verify", user_id=user_id)
