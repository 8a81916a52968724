"""Deterministic stand-ins for the opaque token generator."""

from __future__ import annotations

from bearchat.services._shared.ports import OpaqueTokenGenerator


class SequenceTokenGenerator(OpaqueTokenGenerator):
    """Yield ``<prefix>000001``, ``<prefix>000002``... so tests can predict tokens."""

    def __init__(self, prefix: str = "tok") -> None:
        self.prefix = prefix
        self._seq = 0

    def generate(self) -> str:
        self._seq += 1
        return f"{self.prefix}{self._seq:06d}"
