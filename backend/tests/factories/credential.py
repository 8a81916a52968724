"""Factory Boy definition for :class:`bearchat.models.credential.Credential`."""

from __future__ import annotations

from datetime import UTC, datetime

import factory
from bearchat.infra.security.werkzeug_password_hasher import WerkzeugPasswordHasher
from bearchat.models.credential import Credential
from tests.factories import BaseFactory

DEFAULT_PASSWORD = "Passw0rd!"

# Cheap parameters; production uses scrypt.
_hasher = WerkzeugPasswordHasher(method="pbkdf2:sha256:1000")


class CredentialFactory(BaseFactory):
    """
    Build persisted :class:`Credential` rows.

    Notes
    -----
    - ``password`` is a parameter: pass the raw value and the row is inserted
      with its hash.
    - No verification or reset token is pending unless one is passed in.
    """

    class Meta:
        model = Credential

    username = factory.Sequence(lambda n: f"bear{n}")
    email = factory.Sequence(lambda n: f"bear{n}@example.com")
    password_hash = factory.LazyAttribute(lambda o: _hasher.hash(o.password))
    verified = False
    verification_token = ""
    verification_token_issued_at = None
    reset_token = ""
    reset_token_issued_at = None

    class Params:
        password = DEFAULT_PASSWORD
        pending_verification = factory.Trait(
            verification_token=factory.Sequence(lambda n: f"verify{n:06d}"),
            verification_token_issued_at=factory.LazyFunction(lambda: datetime.now(UTC)),
        )
        pending_reset = factory.Trait(
            reset_token=factory.Sequence(lambda n: f"reset{n:06d}"),
            reset_token_issued_at=factory.LazyFunction(lambda: datetime.now(UTC)),
        )
