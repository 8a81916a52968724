from __future__ import annotations

import secrets
import string
from typing import Protocol

BASE62_ALPHABET = string.digits + string.ascii_letters


class OpaqueTokenGenerator(Protocol):
    """Port producing short, unguessable tokens for verification and reset links."""

    def generate(self) -> str: ...


class RandomTokenGenerator(OpaqueTokenGenerator):
    """
    Base62 tokens drawn from :mod:`secrets`.

    :param length: Number of characters; 16 base62 chars carry ~95 bits.
    """

    def __init__(self, length: int = 16) -> None:
        if length < 6:
            raise ValueError("Opaque tokens shorter than 6 characters are guessable.")
        self.length = length

    def generate(self) -> str:
        return "".join(secrets.choice(BASE62_ALPHABET) for _ in range(self.length))

