from __future__ import annotations

from typing import Protocol


class PasswordHasher(Protocol):
    """
    Port for one-way, salted password hashing.

    ``verify`` receives the *raw* candidate and hashes it exactly once;
    callers must never pre-hash a candidate before comparing.
    """

    def hash(self, password: str) -> str: ...

    def verify(self, password: str, password_hash: str) -> bool: ...
