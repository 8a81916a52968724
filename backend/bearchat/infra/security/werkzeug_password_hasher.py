from __future__ import annotations

from werkzeug.security import check_password_hash, generate_password_hash

from bearchat.services._shared.errors import HashingFailed
from bearchat.services._shared.ports import PasswordHasher


class WerkzeugPasswordHasher(PasswordHasher):
    """
    Salted password hashing via :mod:`werkzeug.security`.

    Stored hashes look like ``method$salt$hash``; the method and salt travel
    with the hash so verification never needs the original configuration.

    :param method: Werkzeug method string (``"scrypt"``, ``"pbkdf2:sha256:600000"``).
    :param salt_length: Salt length in characters.
    """

    def __init__(self, method: str = "scrypt", salt_length: int = 16) -> None:
        self.method = method
        self.salt_length = salt_length

    def hash(self, password: str) -> str:
        try:
            return generate_password_hash(
                password, method=self.method, salt_length=self.salt_length
            )
        except (ValueError, OSError) as exc:
            raise HashingFailed(str(exc)) from exc

    def verify(self, password: str, password_hash: str) -> bool:
        if not password_hash or password_hash.count("$") < 2:
            raise HashingFailed("Stored password hash is unreadable")
        try:
            return check_password_hash(password_hash, password)
        except ValueError as exc:
            raise HashingFailed(str(exc)) from exc
