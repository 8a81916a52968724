# bearchat/services/password_reset/service.py
from __future__ import annotations

import logging
from datetime import timedelta
from urllib.parse import urlencode

from bearchat.core.logger import log_event
from bearchat.services._shared.base import BaseService, is_older_than, now_utc
from bearchat.services._shared.errors import (
    EmailNotFound,
    InvalidResetPair,
    MailDeliveryFailed,
    MailerError,
    UpdateFailed,
)
from bearchat.services._shared.ports import Mailer, OpaqueTokenGenerator, PasswordHasher
from bearchat.services.password_reset.dto import ResetConfirmIn

logger = logging.getLogger(__name__)

RESET_SUBJECT = "BearChat Password Reset"
RESET_TEMPLATE = "password-reset.html"


class ResetFlow(BaseService):
    """
    Two-step password reset: request a token by email, then confirm it.

    Requesting a reset never touches existing sessions. Confirming replaces
    the password hash and clears the token in one conditional write, so a
    token can only be used once even under concurrent confirms.
    """

    def __init__(
        self,
        *,
        hasher: PasswordHasher,
        mailer: Mailer,
        token_generator: OpaqueTokenGenerator,
        ttl: timedelta | None = timedelta(minutes=60),
        link_base: str = "http://localhost:3000",
    ) -> None:
        super().__init__()
        self.hasher = hasher
        self.mailer = mailer
        self.token_generator = token_generator
        self.ttl = ttl
        self.link_base = link_base

    # ------------------------------------------------------------------ #
    # Request
    # ------------------------------------------------------------------ #

    def request_reset(self, email: str) -> None:
        """
        Store a fresh reset token for ``email`` and mail it.

        A later request overwrites any pending token.

        :raises EmailNotFound: If no credential has this email.
        :raises MailDeliveryFailed: If the mailer refused the message. The
            token stays stored; a new request replaces it.
        """
        token = self.token_generator.generate()
        with self.rw_uow() as uow:
            if uow.credentials.update_reset_token(email, token, now_utc()) == 0:
                raise EmailNotFound(email.strip().lower())

        link = f"{self.link_base.rstrip('/')}/resetpw?{urlencode({'token': token})}"
        try:
            self.mailer.send(
                email.strip().lower(),
                RESET_SUBJECT,
                RESET_TEMPLATE,
                {"Token": token, "Link": link},
            )
        except MailerError as exc:
            log_event(logger, "reset.mail_failed", level=logging.WARNING)
            raise MailDeliveryFailed() from exc

        log_event(logger, "reset.requested")

    # ------------------------------------------------------------------ #
    # Confirm
    # ------------------------------------------------------------------ #

    def confirm(self, dto: ResetConfirmIn) -> None:
        """
        Replace the password of ``dto.username`` if ``dto.token`` matches.

        :raises InvalidResetPair: If the (username, token) pair does not match
            a pending reset, or the token has expired.
        :raises UpdateFailed: If the token was consumed between the check and
            the write.
        """
        with self.ro_uow() as uow:
            credential = uow.credentials.find_by_reset_token_and_username(
                dto.token, dto.username
            )
            if credential is None:
                raise InvalidResetPair(dto.username)
            user_id = credential.user_id
            issued_at = credential.reset_token_issued_at

        if is_older_than(issued_at, self.ttl, now=now_utc()):
            log_event(logger, "reset.expired", level=logging.WARNING, user_id=user_id)
            raise InvalidResetPair(dto.username)

        password_hash = self.hasher.hash(dto.new_password)

        with self.rw_uow() as uow:
            affected = uow.credentials.update_password_and_clear_reset(
                dto.username, dto.token, password_hash
            )
            if affected == 0:
                raise UpdateFailed()

        log_event(logger, "reset.completed", user_id=user_id)
