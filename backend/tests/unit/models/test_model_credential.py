"""Unit tests for the Credential model validators."""

from __future__ import annotations

import pytest
from bearchat.models.credential import Credential


def test_email_and_username_are_normalised():
    cred = Credential(username="  teddy ", email="  Teddy@Example.COM ", password_hash="m$s$h")
    assert cred.username == "teddy"
    assert cred.email == "teddy@example.com"


@pytest.mark.parametrize("email", ["no-at-sign", "bear@localhost", ""])
def test_invalid_email_is_rejected(email):
    with pytest.raises(ValueError):
        Credential(username="bear", email=email, password_hash="m$s$h")


def test_blank_username_is_rejected():
    with pytest.raises(ValueError):
        Credential(username="   ", email="b@example.com", password_hash="m$s$h")


def test_password_hash_is_required():
    with pytest.raises(ValueError):
        Credential(username="bear", email="b@example.com", password_hash="")


def test_repr_uses_user_id():
    cred = Credential(user_id="abc", username="bear", email="b@example.com", password_hash="m$s$h")
    assert "abc" in repr(cred)
