"""Shared API helpers: responses, session cookies and identity checks.

Downstream services (posts, profiles) import :func:`require_identity`,
:func:`current_user_id` and :func:`ensure_owner` from here; they only need
the same ``JWT_SECRET_KEY`` as the auth service.
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Iterable
from typing import Any, TypeVar, cast

from flask import Response, current_app, g, jsonify, request

from bearchat.core.extensions import get_auth_components
from bearchat.services._shared.errors import AuthorizationError, Unauthenticated
from bearchat.services._shared.policies.common import is_owner
from bearchat.services.auth.dto import ACCESS_COOKIE, REFRESH_COOKIE, SessionArtifact
from bearchat.services.auth.service import SessionIssuer
from bearchat.services.password_reset.service import ResetFlow
from bearchat.services.verification.service import VerificationFlow

F = TypeVar("F", bound=Callable[..., Any])


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request.endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]


# --------------------------------------------------------------------------- #
# Session tokens on the wire
# --------------------------------------------------------------------------- #


def access_token_from_request() -> str | None:
    """Read the access token from its cookie, falling back to a Bearer header."""

    token = request.cookies.get(ACCESS_COOKIE)
    if token:
        return token
    header = request.headers.get("Authorization", "")
    scheme, _, value = header.partition(" ")
    if scheme.lower() == "bearer" and value.strip():
        return value.strip()
    return None


def refresh_token_from_request(body_token: str | None = None) -> str | None:
    """Read the refresh token from its cookie, or from the request body."""

    return request.cookies.get(REFRESH_COOKIE) or body_token


def apply_session_artifacts(response: Response, artifacts: Iterable[SessionArtifact]) -> Response:
    """Set (or clear) the session cookies described by ``artifacts``.

    Cookies are HttpOnly with ``Path=/``; ``Secure`` and ``SameSite`` come from
    ``AUTH_COOKIE_SECURE`` / ``AUTH_COOKIE_SAMESITE``.
    """

    secure = bool(current_app.config.get("AUTH_COOKIE_SECURE", False))
    samesite = current_app.config.get("AUTH_COOKIE_SAMESITE", "Lax")
    for artifact in artifacts:
        response.set_cookie(
            artifact.name,
            artifact.value,
            expires=artifact.expires_at,
            path="/",
            secure=secure,
            httponly=True,
            samesite=samesite,
        )
    return response


# --------------------------------------------------------------------------- #
# Identity
# --------------------------------------------------------------------------- #


def require_identity(func: F) -> F:
    """Require a valid access token and expose the caller as ``g.user_id``.

    The resolver comes from the app's auth components, so tests and other
    services can swap it per app.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        resolver = get_auth_components().identity
        g.user_id = resolver.identify(access_token_from_request())
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def current_user_id() -> str:
    """Return the user id established by :func:`require_identity`."""

    user_id = getattr(g, "user_id", None)
    if user_id is None:
        raise Unauthenticated()
    return cast(str, user_id)


def ensure_owner(owner_id: str) -> str:
    """Require the authenticated caller to be ``owner_id``.

    :raises AuthorizationError: If someone else is calling.
    """

    user_id = current_user_id()
    if not is_owner(actor_id=user_id, owner_id=owner_id):
        raise AuthorizationError("You can only access your own resources.")
    return user_id


# --------------------------------------------------------------------------- #
# Service builders
# --------------------------------------------------------------------------- #


def session_issuer() -> SessionIssuer:
    auth = get_auth_components()
    return SessionIssuer(
        codec=auth.codec,
        hasher=auth.hasher,
        mailer=auth.mailer,
        token_generator=auth.token_generator,
        cfg=auth.session_cfg,
        flow_cfg=auth.flow_cfg,
        denylist=auth.denylist,
    )


def verification_flow() -> VerificationFlow:
    return VerificationFlow(ttl=get_auth_components().flow_cfg.verification_ttl)


def reset_flow() -> ResetFlow:
    auth = get_auth_components()
    return ResetFlow(
        hasher=auth.hasher,
        mailer=auth.mailer,
        token_generator=auth.token_generator,
        ttl=auth.flow_cfg.reset_ttl,
        link_base=auth.flow_cfg.link_base,
    )
