"""Unit tests for CredentialRepository."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from bearchat.models.credential import Credential
from bearchat.repositories.credential import CredentialRepository
from sqlalchemy.exc import IntegrityError
from tests.factories.credential import CredentialFactory


def _reload(session, user_id: str) -> Credential:
    session.expire_all()
    return session.get(Credential, user_id)


class TestCredentialLookups:
    """Lookups by username, email, user id and pending tokens."""

    @pytest.fixture()
    def repo(self):
        return CredentialRepository()

    def test_find_by_username_and_email(self, repo):
        cred = CredentialFactory(username="alice", email="alice@example.com")

        assert repo.find_by_username("alice").user_id == cred.user_id
        assert repo.find_by_email("ALICE@example.com ").user_id == cred.user_id
        assert repo.find_by_user_id(cred.user_id).username == "alice"
        assert repo.get(cred.user_id) is cred
        assert repo.find_by_username("bob") is None

    def test_empty_tokens_never_match(self, repo):
        CredentialFactory()  # both tokens ""

        assert repo.find_by_verification_token("") is None
        assert repo.find_by_reset_token_and_username("", "anyone") is None

    def test_reset_lookup_requires_both_halves(self, repo):
        cred = CredentialFactory(reset_token="r-1", reset_token_issued_at=datetime.now(UTC))

        assert repo.find_by_reset_token_and_username("r-1", cred.username) is not None
        assert repo.find_by_reset_token_and_username("r-1", "someone-else") is None
        assert repo.find_by_reset_token_and_username("r-2", cred.username) is None


class TestCredentialWrites:
    """Conditional writes report how many rows they touched."""

    @pytest.fixture()
    def repo(self):
        return CredentialRepository()

    def test_insert_assigns_opaque_user_id(self, repo):
        cred = Credential(username="new", email="new@example.com", password_hash="m$s$h")

        assert repo.insert(cred) == 1
        assert len(cred.user_id) == 36

    def test_insert_duplicate_username_raises(self, repo, session):
        CredentialFactory(username="dup")

        with pytest.raises(IntegrityError):
            repo.insert(Credential(username="dup", email="other@example.com", password_hash="m$s$h"))
        session.rollback()

    def test_update_verified_is_single_shot(self, repo, session):
        cred = CredentialFactory(verification_token="v-1")

        assert repo.update_verified("v-1") == 1
        assert repo.update_verified("v-1") == 0
        assert repo.update_verified("") == 0

        stored = _reload(session, cred.user_id)
        assert stored.verified is True
        assert stored.verification_token == ""

    def test_update_reset_token_by_email(self, repo, session):
        cred = CredentialFactory(email="r@example.com")
        issued = datetime.now(UTC)

        assert repo.update_reset_token("R@example.com", "r-9", issued) == 1
        assert repo.update_reset_token("missing@example.com", "r-9", issued) == 0
        assert _reload(session, cred.user_id).reset_token == "r-9"

    def test_update_password_and_clear_reset(self, repo, session):
        cred = CredentialFactory(reset_token="r-5", reset_token_issued_at=datetime.now(UTC))

        assert repo.update_password_and_clear_reset(cred.username, "wrong", "m$s$new") == 0
        assert repo.update_password_and_clear_reset(cred.username, "r-5", "m$s$new") == 1
        assert repo.update_password_and_clear_reset(cred.username, "r-5", "m$s$again") == 0

        stored = _reload(session, cred.user_id)
        assert stored.password_hash == "m$s$new"
        assert stored.reset_token == ""

    def test_clear_expired_flow_tokens(self, repo, session):
        now = datetime.now(UTC)
        stale = CredentialFactory(
            verification_token="v-old", verification_token_issued_at=now - timedelta(days=5),
            reset_token="r-old", reset_token_issued_at=now - timedelta(hours=2),
        )
        fresh = CredentialFactory(
            verification_token="v-new", verification_token_issued_at=now,
            reset_token="r-new", reset_token_issued_at=now,
        )
        stale_id, fresh_id = stale.user_id, fresh.user_id

        cleared = repo.clear_expired_flow_tokens(
            verify_cutoff=now - timedelta(hours=72), reset_cutoff=now - timedelta(minutes=60)
        )

        assert cleared == 2
        s, f = _reload(session, stale_id), _reload(session, fresh_id)
        assert (s.verification_token, s.reset_token) == ("", "")
        assert (f.verification_token, f.reset_token) == ("v-new", "r-new")

    def test_clear_expired_skips_disabled_kinds(self, repo, session):
        now = datetime.now(UTC)
        cred = CredentialFactory(
            verification_token="v-old", verification_token_issued_at=now - timedelta(days=30)
        )

        assert repo.clear_expired_flow_tokens(verify_cutoff=None, reset_cutoff=now) == 0
        assert _reload(session, cred.user_id).verification_token == "v-old"
