"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

from marshmallow import Schema, fields, pre_load, validate


class _TrimmedSchema(Schema):
    """Strip surrounding whitespace from ``TRIMMED`` fields before validation."""

    TRIMMED: tuple[str, ...] = ()

    @pre_load
    def _trim(self, data, **kwargs):
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for name in self.TRIMMED:
            if isinstance(data.get(name), str):
                data[name] = data[name].strip()
        return data


class SignupSchema(_TrimmedSchema):
    """Input payload for account signup."""

    TRIMMED = ("username", "email")

    username = fields.String(required=True, validate=validate.Length(min=3, max=50))
    email = fields.Email(required=True, validate=validate.Length(max=254))
    password = fields.String(required=True, validate=validate.Length(min=8, max=128))


class SigninSchema(_TrimmedSchema):
    """Input payload for signing in with a username."""

    TRIMMED = ("username",)

    username = fields.String(required=True, validate=validate.Length(min=1, max=50))
    password = fields.String(required=True, validate=validate.Length(min=1, max=128))


class RefreshSchema(Schema):
    """Optional body for ``/refresh`` when the cookie is not available."""

    refresh_token = fields.String(load_default=None)


class TokenQuerySchema(Schema):
    """``?token=`` query parameter of the email-link endpoints."""

    token = fields.String(required=True, validate=validate.Length(min=1, max=64))


class ResetRequestSchema(_TrimmedSchema):
    """Input payload for requesting a password reset email."""

    TRIMMED = ("email",)

    email = fields.Email(required=True, validate=validate.Length(max=254))


class ResetConfirmSchema(_TrimmedSchema):
    """Input payload for completing a password reset."""

    TRIMMED = ("username",)

    username = fields.String(required=True, validate=validate.Length(min=1, max=50))
    password = fields.String(required=True, validate=validate.Length(min=8, max=128))


class SessionResponseSchema(Schema):
    """Response payload describing a freshly issued session."""

    user_id = fields.String(required=True)
    access_token = fields.String(required=True)
    refresh_token = fields.String(required=True)
    token_type = fields.String(dump_default="bearer")
    access_expires_at = fields.DateTime(required=True)
    refresh_expires_at = fields.DateTime(required=True)


class WhoAmISchema(Schema):
    """Response payload exposing the caller's identity."""

    user_id = fields.String(required=True)
