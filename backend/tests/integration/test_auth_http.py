"""Integration tests for the ``/api/v1/auth`` endpoints."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import fakeredis
import pytest
from bearchat.core.extensions import get_auth_components
from bearchat.infra.redis.redis_denylist_store import RedisTokenDenylistStore
from bearchat.models.credential import Credential
from bearchat.services._shared.ports import StaticIdentityResolver
from bearchat.services.identity.service import SessionValidator
from redis.exceptions import ConnectionError as RedisConnectionError
from tests.factories.credential import DEFAULT_PASSWORD, CredentialFactory

BASE = "/api/v1/auth"


def _signup(client, username="grizzly", email="grizzly@example.com", password="pw-123456"):
    return client.post(
        f"{BASE}/signup", json={"username": username, "email": email, "password": password}
    )


def _assert_problem(resp, status: int, code: str) -> dict:
    assert resp.status_code == status
    assert resp.mimetype == "application/problem+json"
    body = resp.get_json()
    assert body["status"] == status
    assert body["code"] == code
    assert body["request_id"]
    return body


@pytest.fixture()
def revocation(app):
    """Enable a fakeredis-backed denylist on the app for one test."""
    components = get_auth_components(app)
    original = (components.denylist, components.identity)
    store = RedisTokenDenylistStore(fakeredis.FakeRedis())
    components.denylist = store
    components.identity = SessionValidator(codec=components.codec, denylist=store)
    try:
        yield store
    finally:
        components.denylist, components.identity = original


# -------------------------------- Signup ---------------------------------- #
class TestSignup:
    def test_creates_account_and_sets_cookies(self, client, outbox, session):
        resp = _signup(client)

        assert resp.status_code == 201
        data = resp.get_json()["data"]
        assert data["token_type"] == "bearer"
        assert data["verification_email_sent"] is True
        assert session.get(Credential, data["user_id"]).username == "grizzly"

        access = client.get_cookie("access_token")
        refresh = client.get_cookie("refresh_token")
        assert access.value == data["access_token"]
        assert refresh.value == data["refresh_token"]
        assert access.http_only and refresh.http_only
        assert access.path == "/"

        message = outbox.last_to("grizzly@example.com")
        assert message.subject == "Email Verification"
        assert message.template_data["Link"].endswith(f"?token={message.template_data['Token']}")

    def test_duplicate_username_is_conflict(self, client, outbox):
        _signup(client)
        resp = _signup(client, email="other@example.com")
        _assert_problem(resp, 409, "conflict")

    def test_duplicate_email_is_conflict(self, client, outbox):
        _signup(client)
        resp = _signup(client, username="another", email="GRIZZLY@example.com")
        _assert_problem(resp, 409, "conflict")

    def test_invalid_payload_is_422(self, client):
        resp = client.post(f"{BASE}/signup", json={"username": "ab", "email": "nope"})
        body = _assert_problem(resp, 422, "validation_error")
        assert set(body["details"]["errors"]) == {"username", "email", "password"}

    @pytest.mark.parametrize("username", ["   ", " ab "])
    def test_username_length_is_checked_after_trimming(self, client, outbox, username):
        resp = _signup(client, username=username)

        body = _assert_problem(resp, 422, "validation_error")
        assert set(body["details"]["errors"]) == {"username"}
        assert outbox.outbox == []

    def test_padded_username_and_email_are_trimmed(self, client, outbox, session):
        resp = _signup(client, username="  grizzly  ", email="  Grizzly@Example.com ")

        assert resp.status_code == 201
        stored = session.get(Credential, resp.get_json()["data"]["user_id"])
        assert (stored.username, stored.email) == ("grizzly", "grizzly@example.com")

    def test_mailer_outage_still_creates_account(self, client, outbox):
        outbox.fail_with = "smtp down"
        resp = _signup(client)

        assert resp.status_code == 201
        assert resp.get_json()["data"]["verification_email_sent"] is False


# -------------------------------- Signin ---------------------------------- #
class TestSignin:
    def test_success_sets_cookies(self, client):
        cred = CredentialFactory(username="polar")
        user_id = cred.user_id

        resp = client.post(f"{BASE}/signin", json={"username": "polar", "password": DEFAULT_PASSWORD})

        assert resp.status_code == 200
        assert resp.get_json()["data"]["user_id"] == user_id
        assert client.get_cookie("access_token") is not None

    def test_wrong_password_is_401(self, client):
        CredentialFactory(username="brown")
        resp = client.post(f"{BASE}/signin", json={"username": "brown", "password": "wrong-one"})
        _assert_problem(resp, 401, "unauthorized")
        assert client.get_cookie("access_token") is None

    def test_unknown_user_is_401_without_echoing_name(self, client):
        resp = client.post(f"{BASE}/signin", json={"username": "ghost", "password": "whatever"})
        body = _assert_problem(resp, 401, "unauthorized")
        assert "ghost" not in body["detail"]


# ------------------------- whoami / refresh / logout ----------------------- #
class TestSessionLifecycle:
    def test_whoami_with_cookie(self, client, outbox):
        user_id = _signup(client).get_json()["data"]["user_id"]

        resp = client.get(f"{BASE}/whoami")

        assert resp.status_code == 200
        assert resp.get_json() == {"data": {"user_id": user_id}}

    def test_whoami_with_bearer_header(self, client, outbox):
        data = _signup(client).get_json()["data"]
        client.delete_cookie("access_token")

        resp = client.get(
            f"{BASE}/whoami", headers={"Authorization": f"Bearer {data['access_token']}"}
        )
        assert resp.get_json()["data"]["user_id"] == data["user_id"]

    def test_whoami_without_token_is_401(self, client):
        _assert_problem(client.get(f"{BASE}/whoami"), 401, "unauthorized")

    def test_whoami_rejects_refresh_token(self, client, outbox):
        data = _signup(client).get_json()["data"]
        client.delete_cookie("access_token")

        resp = client.get(
            f"{BASE}/whoami", headers={"Authorization": f"Bearer {data['refresh_token']}"}
        )
        _assert_problem(resp, 401, "unauthorized")

    def test_refresh_from_cookie(self, client, outbox):
        first = _signup(client).get_json()["data"]

        resp = client.post(f"{BASE}/refresh")

        assert resp.status_code == 200
        second = resp.get_json()["data"]
        assert second["user_id"] == first["user_id"]
        assert second["refresh_token"] != first["refresh_token"]
        assert client.get_cookie("refresh_token").value == second["refresh_token"]

    def test_refresh_from_body(self, client, outbox):
        first = _signup(client).get_json()["data"]
        client.delete_cookie("refresh_token")

        resp = client.post(f"{BASE}/refresh", json={"refresh_token": first["refresh_token"]})
        assert resp.status_code == 200

    def test_refresh_without_token_is_401(self, client):
        _assert_problem(client.post(f"{BASE}/refresh"), 401, "unauthorized")

    def test_logout_clears_cookies(self, client, outbox):
        _signup(client)

        resp = client.post(f"{BASE}/logout")

        assert resp.status_code == 200
        assert resp.get_json() == {"data": {"logged_out": True}}
        set_cookies = resp.headers.getlist("Set-Cookie")
        assert len(set_cookies) == 2
        assert all("01 Jan 1970" in header for header in set_cookies)
        assert client.get_cookie("access_token") is None
        assert client.get_cookie("refresh_token") is None
        _assert_problem(client.get(f"{BASE}/whoami"), 401, "unauthorized")

    def test_logout_is_idempotent(self, client):
        assert client.get(f"{BASE}/logout").status_code == 200
        assert client.get(f"{BASE}/logout").status_code == 200

    def test_logout_with_denylist_revokes_tokens(self, client, outbox, revocation):
        data = _signup(client).get_json()["data"]
        bearer = {"Authorization": f"Bearer {data['access_token']}"}

        client.post(f"{BASE}/logout")

        _assert_problem(client.get(f"{BASE}/whoami", headers=bearer), 401, "unauthorized")
        resp = client.post(f"{BASE}/refresh", json={"refresh_token": data["refresh_token"]})
        _assert_problem(resp, 401, "unauthorized")

    def test_logout_clears_cookies_when_denylist_is_down(
        self, client, outbox, revocation, monkeypatch
    ):
        _signup(client)

        def unreachable(*args, **kwargs):
            raise RedisConnectionError("redis down")

        monkeypatch.setattr(revocation.r, "set", unreachable)

        resp = client.post(f"{BASE}/logout")

        assert resp.status_code == 200
        set_cookies = resp.headers.getlist("Set-Cookie")
        assert len(set_cookies) == 2
        assert all("01 Jan 1970" in header for header in set_cookies)
        assert client.get_cookie("access_token") is None

    def test_identity_resolver_can_be_swapped(self, app, client):
        components = get_auth_components(app)
        original = components.identity
        components.identity = StaticIdentityResolver("fixed-user")
        try:
            resp = client.get(f"{BASE}/whoami", headers={"Authorization": "Bearer anything"})
        finally:
            components.identity = original
        assert resp.get_json()["data"]["user_id"] == "fixed-user"


# ----------------------------- Verification ------------------------------- #
class TestVerify:
    def test_link_from_signup_email_verifies(self, client, outbox, session):
        user_id = _signup(client).get_json()["data"]["user_id"]
        token = outbox.last_to("grizzly@example.com").template_data["Token"]

        resp = client.get(f"{BASE}/verify", query_string={"token": token})

        assert resp.status_code == 200
        assert resp.get_json() == {"data": {"verified": True}}
        session.expire_all()
        assert session.get(Credential, user_id).verified is True

        _assert_problem(
            client.get(f"{BASE}/verify", query_string={"token": token}), 404, "not_found"
        )

    def test_missing_token_is_422(self, client):
        _assert_problem(client.get(f"{BASE}/verify"), 422, "validation_error")

    def test_unknown_token_is_404(self, client):
        resp = client.post(f"{BASE}/verify", query_string={"token": "nope"})
        _assert_problem(resp, 404, "not_found")

    def test_expired_token_is_404(self, client):
        CredentialFactory(
            verification_token="stale",
            verification_token_issued_at=datetime.now(UTC) - timedelta(days=10),
        )
        resp = client.get(f"{BASE}/verify", query_string={"token": "stale"})
        _assert_problem(resp, 404, "not_found")


# ------------------------------ Password reset ----------------------------- #
class TestPasswordReset:
    def test_full_reset_flow(self, client, outbox):
        cred = CredentialFactory(username="ursa", email="ursa@example.com")
        user_id = cred.user_id

        resp = client.post(f"{BASE}/sendreset", json={"email": "ursa@example.com"})
        assert resp.get_json() == {"data": {"sent": True}}
        message = outbox.last_to("ursa@example.com")
        assert message.subject == "BearChat Password Reset"
        token = message.template_data["Token"]

        resp = client.post(
            f"{BASE}/resetpw",
            query_string={"token": token},
            json={"username": "ursa", "password": "new-password-1"},
        )
        assert resp.get_json() == {"data": {"reset": True}}

        old = client.post(f"{BASE}/signin", json={"username": "ursa", "password": DEFAULT_PASSWORD})
        _assert_problem(old, 401, "unauthorized")
        new = client.post(f"{BASE}/signin", json={"username": "ursa", "password": "new-password-1"})
        assert new.get_json()["data"]["user_id"] == user_id

        reused = client.post(
            f"{BASE}/resetpw",
            query_string={"token": token},
            json={"username": "ursa", "password": "third-password"},
        )
        _assert_problem(reused, 404, "not_found")

    def test_unknown_email_is_404(self, client, outbox):
        resp = client.post(f"{BASE}/sendreset", json={"email": "nobody@example.com"})
        _assert_problem(resp, 404, "not_found")
        assert outbox.outbox == []

    def test_mail_failure_is_503(self, client, outbox):
        cred = CredentialFactory()
        outbox.fail_with = "quota"
        resp = client.post(f"{BASE}/sendreset", json={"email": cred.email})
        body = _assert_problem(resp, 503, "service_unavailable")
        assert "quota" not in body["detail"]

    def test_wrong_username_is_404(self, client, outbox):
        CredentialFactory(email="owner@example.com")
        other = CredentialFactory()
        other_name = other.username
        client.post(f"{BASE}/sendreset", json={"email": "owner@example.com"})
        token = outbox.last_to("owner@example.com").template_data["Token"]

        resp = client.post(
            f"{BASE}/resetpw",
            query_string={"token": token},
            json={"username": other_name, "password": "hijacked-pw"},
        )
        _assert_problem(resp, 404, "not_found")

    def test_short_password_is_422(self, client):
        resp = client.post(
            f"{BASE}/resetpw", query_string={"token": "t"}, json={"username": "u", "password": "short"}
        )
        _assert_problem(resp, 422, "validation_error")
