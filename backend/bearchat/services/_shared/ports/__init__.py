"""
bearchat.services._shared.ports
===============================

Collection of *ports* (hexagonal interfaces) that define the contracts the
credential and session services depend on.

Modules
-------
- :mod:`token_codec`:
    Defines :class:`~.TokenCodec` and :class:`~.SessionClaims`.
- :mod:`password_hasher`:
    Defines :class:`~.PasswordHasher`.
- :mod:`opaque_tokens`:
    Defines :class:`~.OpaqueTokenGenerator` and the ``secrets``-backed
    :class:`~.RandomTokenGenerator`.
- :mod:`mailer`:
    Defines :class:`~.Mailer` and the in-memory :class:`~.OutboxMailer`.
- :mod:`denylist_store`:
    Defines :class:`~.TokenDenylistStore` for optional early revocation.
- :mod:`identity`:
    Defines :class:`~.IdentityResolver`, the strategy used by downstream
    services to turn a token into a user id.

Concrete adapters (PyJWT, werkzeug, Redis, logging mailer) live under
``bearchat.infra``.
"""

from __future__ import annotations

from .denylist_store import InMemoryDenylistStore, TokenDenylistStore
from .identity import IdentityResolver, StaticIdentityResolver
from .mailer import Mailer, OutboxMailer, OutgoingMessage
from .opaque_tokens import OpaqueTokenGenerator, RandomTokenGenerator
from .password_hasher import PasswordHasher
from .token_codec import (
    ACCESS_SUBJECT,
    REFRESH_SUBJECT,
    SESSION_SUBJECTS,
    SessionClaims,
    TokenCodec,
)

__all__ = [
    "ACCESS_SUBJECT",
    "REFRESH_SUBJECT",
    "SESSION_SUBJECTS",
    "SessionClaims",
    "TokenCodec",
    "PasswordHasher",
    "OpaqueTokenGenerator",
    "RandomTokenGenerator",
    "Mailer",
    "OutboxMailer",
    "OutgoingMessage",
    "TokenDenylistStore",
    "InMemoryDenylistStore",
    "IdentityResolver",
    "StaticIdentityResolver",
]
