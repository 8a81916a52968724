"""Repository package exposing persistence-layer access for the credential store."""

from __future__ import annotations

from bearchat.repositories.base import BaseRepository
from bearchat.repositories.credential import CredentialRepository

__all__ = [
    "BaseRepository",
    "CredentialRepository",
]
