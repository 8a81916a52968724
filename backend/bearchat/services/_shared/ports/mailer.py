from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from bearchat.services._shared.errors import MailerError


@dataclass(frozen=True, slots=True)
class OutgoingMessage:
    """A templated message handed to the mail collaborator."""

    to_address: str
    subject: str
    template_name: str
    template_data: Mapping[str, Any] = field(default_factory=dict)


class Mailer(Protocol):
    """
    Port for the external "send templated message to address" collaborator.

    Implementations raise :class:`MailerError` when the message cannot be
    handed off; delivery itself is out of scope.
    """

    def send(
        self,
        to_address: str,
        subject: str,
        template_name: str,
        template_data: Mapping[str, Any],
    ) -> None: ...


class OutboxMailer(Mailer):
    """In-memory mailer recording every message (tests and local demos)."""

    def __init__(self) -> None:
        self.outbox: list[OutgoingMessage] = []
        self.fail_with: str | None = None

    def send(
        self,
        to_address: str,
        subject: str,
        template_name: str,
        template_data: Mapping[str, Any],
    ) -> None:
        if self.fail_with is not None:
            raise MailerError(self.fail_with)
        self.outbox.append(
            OutgoingMessage(
                to_address=to_address,
                subject=subject,
                template_name=template_name,
                template_data=dict(template_data),
            )
        )

    def last_to(self, to_address: str) -> OutgoingMessage | None:
        """Return the most recent message sent to ``to_address``."""
        for message in reversed(self.outbox):
            if message.to_address == to_address:
                return message
        return None
