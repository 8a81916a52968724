"""Authentication endpoints using the service layer."""

from __future__ import annotations

from flask import Blueprint, request

from bearchat.api.deps import (
    access_token_from_request,
    apply_session_artifacts,
    current_user_id,
    json_response,
    refresh_token_from_request,
    require_identity,
    reset_flow,
    session_issuer,
    timing,
    verification_flow,
)
from bearchat.schemas import (
    RefreshSchema,
    ResetConfirmSchema,
    ResetRequestSchema,
    SessionResponseSchema,
    SigninSchema,
    SignupSchema,
    TokenQuerySchema,
    WhoAmISchema,
)
from bearchat.services.auth.dto import SessionPair, SigninIn, SignupIn
from bearchat.services.password_reset.dto import ResetConfirmIn

bp = Blueprint("auth", __name__)

signup_schema = SignupSchema()
signin_schema = SigninSchema()
refresh_schema = RefreshSchema()
token_query_schema = TokenQuerySchema()
reset_request_schema = ResetRequestSchema()
reset_confirm_schema = ResetConfirmSchema()
session_schema = SessionResponseSchema()
whoami_schema = WhoAmISchema()


def _session_body(pair: SessionPair) -> dict:
    return session_schema.dump(
        {
            "user_id": pair.user_id,
            "access_token": pair.access.value,
            "refresh_token": pair.refresh.value,
            "access_expires_at": pair.access.expires_at,
            "refresh_expires_at": pair.refresh.expires_at,
        }
    )


@bp.post("/signup")
@timing
def signup():
    """Create an account, sign it in and send the verification email."""

    data = signup_schema.load(request.get_json(silent=True) or {})
    result = session_issuer().signup(SignupIn(**data))
    body = {
        "data": {
            **_session_body(result.session),
            "verification_email_sent": result.verification_email_sent,
        }
    }
    return apply_session_artifacts(json_response(body, status=201), result.session.artifacts)


@bp.post("/signin")
@timing
def signin():
    """Check username/password and issue session cookies."""

    data = signin_schema.load(request.get_json(silent=True) or {})
    pair = session_issuer().signin(SigninIn(**data))
    return apply_session_artifacts(json_response({"data": _session_body(pair)}), pair.artifacts)


@bp.post("/refresh")
@timing
def refresh():
    """Trade a refresh token (cookie or body) for a new session."""

    data = refresh_schema.load(request.get_json(silent=True) or {})
    pair = session_issuer().refresh(refresh_token_from_request(data["refresh_token"]))
    return apply_session_artifacts(json_response({"data": _session_body(pair)}), pair.artifacts)


@bp.route("/logout", methods=["GET", "POST"])
@timing
def logout():
    """Clear the session cookies (and revoke the tokens when a denylist is set)."""

    artifacts = session_issuer().logout(
        access_token=access_token_from_request(),
        refresh_token=refresh_token_from_request(),
    )
    return apply_session_artifacts(json_response({"data": {"logged_out": True}}), artifacts)


@bp.route("/verify", methods=["GET", "POST"])
@timing
def verify():
    """Consume the verification token from the signup email link."""

    data = token_query_schema.load(request.args)
    verification_flow().confirm(data["token"])
    return json_response({"data": {"verified": True}})


@bp.post("/sendreset")
@timing
def send_reset():
    """Email a password reset link."""

    data = reset_request_schema.load(request.get_json(silent=True) or {})
    reset_flow().request_reset(data["email"])
    return json_response({"data": {"sent": True}})


@bp.post("/resetpw")
@timing
def reset_password():
    """Replace the password using the token from the reset email link."""

    query = token_query_schema.load(request.args)
    data = reset_confirm_schema.load(request.get_json(silent=True) or {})
    reset_flow().confirm(
        ResetConfirmIn(
            username=data["username"], token=query["token"], new_password=data["password"]
        )
    )
    return json_response({"data": {"reset": True}})


@bp.get("/whoami")
@require_identity
@timing
def whoami():
    """Return the user id carried by the presented access token."""

    return json_response({"data": whoami_schema.dump({"user_id": current_user_id()})})
