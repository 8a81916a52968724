"""Credential repository: lookups and conditional flow-token writes."""

from __future__ import annotations

from datetime import datetime
from typing import Any, cast

from sqlalchemy import CursorResult, or_, select, update

from bearchat.models.credential import Credential
from bearchat.repositories.base import BaseRepository


class CredentialRepository(BaseRepository[Credential]):
    """Persistence-only repository for :class:`Credential`.

    Every write returns the number of rows it affected. Writes that consume a
    flow token are conditional on the token value (and never match the empty
    string), so of two concurrent consumers exactly one observes ``1``.
    """

    model = Credential

    def _pk_attr(self):
        return Credential.user_id

    # ---------------------------- Lookups ----------------------------

    def find_by_username(self, username: str) -> Credential | None:
        stmt = select(Credential).where(Credential.username == username.strip())
        return cast(Credential | None, self.session.execute(stmt).scalars().first())

    def find_by_email(self, email: str) -> Credential | None:
        """Fetch a credential by email (case-insensitive).

        :param email: Email address; normalised before comparison.
        :type email: str
        :returns: Credential or ``None``.
        :rtype: Credential | None
        """
        stmt = select(Credential).where(Credential.email == email.strip().lower())
        return cast(Credential | None, self.session.execute(stmt).scalars().first())

    def find_by_user_id(self, user_id: str) -> Credential | None:
        return self.get(user_id)

    def find_by_verification_token(self, token: str) -> Credential | None:
        """Return the credential holding ``token`` as its pending verification token.

        The empty string never matches: it marks "no token pending".
        """
        if not token:
            return None
        stmt = select(Credential).where(Credential.verification_token == token)
        return cast(Credential | None, self.session.execute(stmt).scalars().first())

    def find_by_reset_token_and_username(self, token: str, username: str) -> Credential | None:
        if not token:
            return None
        stmt = select(Credential).where(
            Credential.reset_token == token,
            Credential.username == username.strip(),
        )
        return cast(Credential | None, self.session.execute(stmt).scalars().first())

    # ---------------------------- Writes ----------------------------

    def insert(self, credential: Credential) -> int:
        """Insert a new credential and flush.

        :returns: ``1`` (rows affected).
        :raises sqlalchemy.exc.IntegrityError: On duplicate username/email.
        """
        self.add(credential)
        return 1

    def _execute_update(self, stmt: Any) -> int:
        result = cast(
            CursorResult[Any],
            self.session.execute(stmt, execution_options={"synchronize_session": False}),
        )
        return int(result.rowcount or 0)

    def update_verified(self, token: str) -> int:
        """Mark the holder of ``token`` verified and clear the token.

        :param token: Pending verification token.
        :returns: Rows affected (``0`` when no row holds the token).
        """
        if not token:
            return 0
        stmt = (
            update(Credential)
            .where(Credential.verification_token == token, Credential.verification_token != "")
            .values(verified=True, verification_token="", verification_token_issued_at=None)
        )
        return self._execute_update(stmt)

    def update_reset_token(self, email: str, token: str, issued_at: datetime) -> int:
        """Store a fresh reset token for the credential owning ``email``.

        Any previously pending reset token is overwritten.

        :returns: Rows affected (``0`` when the email is unknown).
        """
        stmt = (
            update(Credential)
            .where(Credential.email == email.strip().lower())
            .values(reset_token=token, reset_token_issued_at=issued_at)
        )
        return self._execute_update(stmt)

    def update_password_and_clear_reset(
        self, username: str, token: str, password_hash: str
    ) -> int:
        """Replace the password hash and consume the reset token in one write.

        The ``WHERE`` clause repeats the token check so a token consumed
        between the caller's read and this write yields ``0``.
        """
        if not token:
            return 0
        stmt = (
            update(Credential)
            .where(
                Credential.username == username.strip(),
                Credential.reset_token == token,
                Credential.reset_token != "",
            )
            .values(password_hash=password_hash, reset_token="", reset_token_issued_at=None)
        )
        return self._execute_update(stmt)

    def clear_expired_flow_tokens(
        self,
        *,
        verify_cutoff: datetime | None,
        reset_cutoff: datetime | None,
    ) -> int:
        """Clear verification/reset tokens issued before their cutoff.

        A ``None`` cutoff leaves that token kind untouched.

        :returns: Total rows affected across both token kinds.
        """
        affected = 0
        if verify_cutoff is not None:
            affected += self._execute_update(
                update(Credential)
                .where(
                    Credential.verification_token != "",
                    or_(
                        Credential.verification_token_issued_at.is_(None),
                        Credential.verification_token_issued_at < verify_cutoff,
                    ),
                )
                .values(verification_token="", verification_token_issued_at=None)
            )
        if reset_cutoff is not None:
            affected += self._execute_update(
                update(Credential)
                .where(
                    Credential.reset_token != "",
                    or_(
                        Credential.reset_token_issued_at.is_(None),
                        Credential.reset_token_issued_at < reset_cutoff,
                    ),
                )
                .values(reset_token="", reset_token_issued_at=None)
            )
        return affected
