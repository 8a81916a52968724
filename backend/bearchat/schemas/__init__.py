"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import (
    RefreshSchema,
    ResetConfirmSchema,
    ResetRequestSchema,
    SessionResponseSchema,
    SigninSchema,
    SignupSchema,
    TokenQuerySchema,
    WhoAmISchema,
)

__all__ = [
    "SignupSchema",
    "SigninSchema",
    "RefreshSchema",
    "TokenQuerySchema",
    "ResetRequestSchema",
    "ResetConfirmSchema",
    "SessionResponseSchema",
    "WhoAmISchema",
]
