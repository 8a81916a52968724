# bearchat/services/auth/service.py
from __future__ import annotations

import logging
from datetime import datetime
from urllib.parse import urlencode
from uuid import uuid4

from sqlalchemy.exc import IntegrityError

from bearchat.core.logger import log_event
from bearchat.models.credential import Credential
from bearchat.services._shared.base import BaseService, now_utc
from bearchat.services._shared.errors import (
    DependencyError,
    DuplicateEmail,
    DuplicateUsername,
    InvalidPassword,
    MailerError,
    TokenError,
    Unauthorized,
    UnverifiedAccount,
    UserNotFound,
    ValidationError,
    violates,
)
from bearchat.services._shared.ports import (
    ACCESS_SUBJECT,
    REFRESH_SUBJECT,
    Mailer,
    OpaqueTokenGenerator,
    PasswordHasher,
    SessionClaims,
    TokenCodec,
    TokenDenylistStore,
)
from bearchat.services.auth.dto import (
    ACCESS_COOKIE,
    EPOCH,
    REFRESH_COOKIE,
    FlowTokenConfig,
    SessionArtifact,
    SessionConfig,
    SessionPair,
    SigninIn,
    SignupIn,
    SignupOut,
)

logger = logging.getLogger(__name__)

SIGNUP_SUBJECT = "Email Verification"
SIGNUP_TEMPLATE = "user-signup.html"


class SessionIssuer(BaseService):
    """
    Session lifecycle service (signup / signin / refresh / logout).

    Every successful authentication mints two signed tokens for the same
    user: a short-lived ``access`` token and a longer ``refresh`` token.
    Tokens are verified statelessly by any service sharing the codec secret;
    the optional denylist adds early revocation on logout and refresh.
    """

    def __init__(
        self,
        *,
        codec: TokenCodec,
        hasher: PasswordHasher,
        mailer: Mailer,
        token_generator: OpaqueTokenGenerator,
        cfg: SessionConfig | None = None,
        flow_cfg: FlowTokenConfig | None = None,
        denylist: TokenDenylistStore | None = None,
    ) -> None:
        """
        Initialize the service with its collaborators.

        :param codec: Signs and verifies session claims.
        :param hasher: Hashes and checks passwords.
        :param mailer: Sends the verification email.
        :param token_generator: Produces the opaque verification token.
        :param cfg: Session token lifetimes and signin policy.
        :param flow_cfg: Link base for the verification email.
        :param denylist: Optional early-revocation store.
        """
        super().__init__()
        self.codec = codec
        self.hasher = hasher
        self.mailer = mailer
        self.token_generator = token_generator
        self.cfg = cfg or SessionConfig()
        self.flow_cfg = flow_cfg or FlowTokenConfig()
        self.denylist = denylist

    # ------------------------------------------------------------------ #
    # Signup
    # ------------------------------------------------------------------ #

    def signup(self, dto: SignupIn) -> SignupOut:
        """
        Create a credential, sign the new user in and send the verification email.

        :param dto: Signup input.
        :returns: Session pair plus whether the verification email went out.
        :raises DuplicateUsername: If the username is taken.
        :raises DuplicateEmail: If the email is taken.
        :raises ValidationError: If the username or email is blank or malformed.
        """
        with self.ro_uow() as uow:
            if uow.credentials.find_by_username(dto.username) is not None:
                raise DuplicateUsername(dto.username.strip())
            if uow.credentials.find_by_email(dto.email) is not None:
                raise DuplicateEmail(dto.email.strip().lower())

        password_hash = self.hasher.hash(dto.password)
        verification_token = self.token_generator.generate()
        try:
            credential = Credential(
                username=dto.username,
                email=dto.email,
                password_hash=password_hash,
                verified=False,
                verification_token=verification_token,
                verification_token_issued_at=now_utc(),
            )
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc

        try:
            with self.rw_uow() as uow:
                uow.credentials.insert(credential)
                user_id = credential.user_id
                email = credential.email
        except IntegrityError as exc:
            # A concurrent signup won the race; the constraint is authoritative.
            if violates(exc, "uq_credentials_username", column="credentials.username"):
                raise DuplicateUsername(dto.username.strip()) from exc
            raise DuplicateEmail(dto.email.strip().lower()) from exc

        log_event(logger, "signup", user_id=user_id)
        session = self._issue_pair(user_id)
        sent = self._send_verification(email, verification_token, user_id=user_id)
        return SignupOut(session=session, verification_email_sent=sent)

    def _send_verification(self, email: str, token: str, *, user_id: str) -> bool:
        link = f"{self.flow_cfg.link_base.rstrip('/')}/verify?{urlencode({'token': token})}"
        try:
            self.mailer.send(email, SIGNUP_SUBJECT, SIGNUP_TEMPLATE, {"Token": token, "Link": link})
        except MailerError:
            log_event(
                logger, "signup.mail_failed", level=logging.WARNING, user_id=user_id
            )
            return False
        return True

    # ------------------------------------------------------------------ #
    # Signin
    # ------------------------------------------------------------------ #

    def signin(self, dto: SigninIn) -> SessionPair:
        """
        Check a username/password pair and issue a fresh session.

        The raw candidate is handed to the hasher as-is; it is never hashed
        here first.

        :param dto: Signin input.
        :returns: Access/refresh session pair.
        :raises UserNotFound: If no credential has this username.
        :raises InvalidPassword: If the password does not match.
        :raises UnverifiedAccount: If verification is required and pending.
        """
        with self.ro_uow() as uow:
            credential = uow.credentials.find_by_username(dto.username)
            if credential is None:
                log_event(
                    logger, "signin.failed", level=logging.WARNING, reason="unknown_user"
                )
                raise UserNotFound(dto.username.strip())
            user_id = credential.user_id
            password_hash = credential.password_hash
            verified = credential.verified

        if not self.hasher.verify(dto.password, password_hash):
            log_event(
                logger,
                "signin.failed",
                level=logging.WARNING,
                user_id=user_id,
                reason="bad_password",
            )
            raise InvalidPassword()

        if self.cfg.require_verified and not verified:
            raise UnverifiedAccount()

        log_event(logger, "signin", user_id=user_id)
        return self._issue_pair(user_id)

    # ------------------------------------------------------------------ #
    # Refresh
    # ------------------------------------------------------------------ #

    def refresh(self, refresh_token: str | None) -> SessionPair:
        """
        Exchange a valid refresh token for a new session pair.

        :param refresh_token: Encoded refresh token.
        :returns: New access/refresh session pair.
        :raises Unauthorized: If the token is missing, invalid, not a refresh
            token, revoked, or belongs to a credential that no longer exists.
        """
        if not refresh_token:
            raise Unauthorized("Missing refresh token")
        try:
            claims = self.codec.verify(refresh_token)
        except TokenError as exc:
            raise Unauthorized(str(exc)) from exc

        if claims.subject != REFRESH_SUBJECT:
            raise Unauthorized("Refresh token required")
        if self.denylist is not None and claims.jti and self.denylist.is_revoked(claims.jti):
            raise Unauthorized("Refresh token has been revoked")

        with self.ro_uow() as uow:
            if uow.credentials.find_by_user_id(claims.user_id) is None:
                raise Unauthorized("Unknown session owner")

        if self.denylist is not None and claims.jti:
            # Single use: a concurrent refresh with the same token loses here.
            if not self.denylist.revoke_jti(jti=claims.jti, expires_at=claims.expires_at_dt):
                raise Unauthorized("Refresh token has been revoked")

        log_event(logger, "refresh", user_id=claims.user_id)
        return self._issue_pair(claims.user_id)

    # ------------------------------------------------------------------ #
    # Logout
    # ------------------------------------------------------------------ #

    def logout(
        self,
        access_token: str | None = None,
        refresh_token: str | None = None,
    ) -> tuple[SessionArtifact, SessionArtifact]:
        """
        End the client session.

        Always returns two cleared artifacts (empty value, expiry at the
        epoch). When a denylist is configured, presented tokens that still
        verify are revoked until their natural expiry. A denylist outage is
        logged and does not stop the artifacts from being cleared.
        """
        if self.denylist is not None:
            for token in (access_token, refresh_token):
                if token:
                    self._revoke_quietly(self.denylist, token)

        return (
            SessionArtifact(name=ACCESS_COOKIE, value="", expires_at=EPOCH),
            SessionArtifact(name=REFRESH_COOKIE, value="", expires_at=EPOCH),
        )

    def _revoke_quietly(self, denylist: TokenDenylistStore, token: str) -> None:
        try:
            claims = self.codec.verify(token)
        except TokenError as exc:
            # Nothing to revoke: the token is already unusable.
            logger.debug("logout: skipping unverifiable token (%s)", exc)
            return
        if not claims.jti:
            return
        try:
            denylist.revoke_jti(jti=claims.jti, expires_at=claims.expires_at_dt)
        except DependencyError as exc:
            log_event(
                logger,
                "logout.revoke_failed",
                level=logging.WARNING,
                user_id=claims.user_id,
                subject=claims.subject,
                error=type(exc).__name__,
            )
            return
        log_event(logger, "logout.revoked", user_id=claims.user_id, subject=claims.subject)

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _issue_pair(self, user_id: str) -> SessionPair:
        issued = now_utc().replace(microsecond=0)
        access = self._issue(user_id, ACCESS_SUBJECT, issued, issued + self.cfg.access_expires)
        refresh = self._issue(
            user_id, REFRESH_SUBJECT, issued, issued + self.cfg.refresh_expires
        )
        return SessionPair(
            user_id=user_id,
            access=SessionArtifact(name=ACCESS_COOKIE, value=access[0], expires_at=access[1]),
            refresh=SessionArtifact(name=REFRESH_COOKIE, value=refresh[0], expires_at=refresh[1]),
        )

    def _issue(
        self, user_id: str, subject: str, issued: datetime, expires: datetime
    ) -> tuple[str, datetime]:
        claims = SessionClaims(
            user_id=user_id,
            subject=subject,
            issuer=self.cfg.issuer,
            issued_at=int(issued.timestamp()),
            expires_at=int(expires.timestamp()),
            jti=uuid4().hex,
        )
        return self.codec.issue(claims), expires
