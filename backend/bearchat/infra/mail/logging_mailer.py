from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from bearchat.services._shared.ports import Mailer

logger = logging.getLogger(__name__)


class LoggingMailer(Mailer):
    """
    Mailer that writes each message to the application log.

    Used in development and as the default until a real delivery backend is
    wired in. Template data (which carries tokens) is logged at DEBUG only.
    """

    def __init__(self, sender: str) -> None:
        self.sender = sender

    def send(
        self,
        to_address: str,
        subject: str,
        template_name: str,
        template_data: Mapping[str, Any],
    ) -> None:
        logger.info(
            "mail.queued from=%s to=%s subject=%r template=%s",
            self.sender,
            to_address,
            subject,
            template_name,
            extra={"event": "mail.queued"},
        )
        logger.debug("mail.data template=%s data=%s", template_name, dict(template_data))
