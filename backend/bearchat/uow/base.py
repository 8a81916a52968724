"""Transaction boundary contract shared by the credential flows."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from bearchat.repositories import CredentialRepository


class UnitOfWork(ABC):
    """
    One use case's transaction, used as a context manager.

    Implementations expose ``credentials`` bound to the transaction's session
    and decide on exit whether to commit (read-write) or discard (read-only).
    """

    credentials: CredentialRepository

    @abstractmethod
    def __enter__(self) -> UnitOfWork: ...

    @abstractmethod
    def __exit__(self, exc_type, exc, tb) -> None: ...

    @abstractmethod
    def commit(self) -> None: ...

    @abstractmethod
    def rollback(self) -> None: ...
