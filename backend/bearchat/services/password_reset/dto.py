# bearchat/services/password_reset/dto.py
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ResetConfirmIn:
    """
    Input DTO for completing a password reset.

    :param username: Account the reset token was issued for.
    :type username: str
    :param token: Opaque reset token from the email link.
    :type token: str
    :param new_password: Raw replacement password.
    :type new_password: str
    """

    username: str
    token: str
    new_password: str
