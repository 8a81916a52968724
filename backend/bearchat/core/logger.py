"""JSON logging with request correlation and audit events."""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from flask import Flask, has_request_context, request

REQUEST_ID_HEADER = "X-Request-ID"
#: Incoming headers accepted as the correlation id, in order of preference.
CORRELATION_HEADERS = (REQUEST_ID_HEADER, "X-Correlation-ID")
REQUEST_ID_ENVIRON_KEY = "bearchat.request_id"

#: ``extra=`` keys copied onto the JSON line when a record carries them.
EXTRA_KEYS = ("endpoint", "elapsed_ms", "event", "user_id")


class JSONFormatter(logging.Formatter):
    """One JSON object per line; only whitelisted extras are emitted."""

    def format(self, record: logging.LogRecord) -> str:
        line: dict[str, Any] = {
            "time": datetime.now(UTC).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", None),
        }
        line.update({key: getattr(record, key) for key in EXTRA_KEYS if hasattr(record, key)})
        if record.exc_info:
            line["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(line, default=str)


class RequestIdFilter(logging.Filter):
    """Stamp ``request_id`` on every record (``None`` outside requests)."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = ensure_request_id() if has_request_context() else None
        return True


def ensure_request_id() -> str:
    """Return the correlation id of the current request.

    Reuses an incoming ``X-Request-ID``/``X-Correlation-ID`` header, otherwise
    mints a UUID4. The id is stored in the WSGI environ, so it is scoped to
    the request rather than the app context. Outside a request a fresh UUID4
    is returned.
    """
    if not has_request_context():
        return str(uuid4())
    current = request.environ.get(REQUEST_ID_ENVIRON_KEY)
    if current:
        return current
    incoming = next(
        (request.headers[h] for h in CORRELATION_HEADERS if request.headers.get(h)), None
    )
    request.environ[REQUEST_ID_ENVIRON_KEY] = incoming or str(uuid4())
    return request.environ[REQUEST_ID_ENVIRON_KEY]


def configure_logging(level: str | int = "INFO") -> None:
    """Send the root logger to stdout as JSON at ``level``."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    handler.addFilter(RequestIdFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    if isinstance(level, str):
        level = logging.getLevelNamesMapping().get(level.upper(), logging.INFO)
    root.setLevel(level)


def log_event(
    logger: logging.Logger,
    event: str,
    *,
    level: int = logging.INFO,
    user_id: str | None = None,
    **fields: Any,
) -> None:
    """Emit a security/audit event with stable ``event`` and ``user_id`` fields.

    Extra keyword fields are appended to the message as ``key=value`` pairs.
    Never pass passwords or tokens here.
    """
    suffix = " ".join(f"{key}={value}" for key, value in sorted(fields.items()))
    message = f"{event} {suffix}".rstrip()
    logger.log(level, message, extra={"event": event, "user_id": user_id})


def init_app(app: Flask) -> None:
    """Seed a request id before each request and echo it on each response."""

    app.logger.addFilter(RequestIdFilter())

    @app.before_request
    def _seed_request_id() -> None:
        ensure_request_id()

    @app.after_request
    def _echo_request_id(response):
        response.headers.setdefault(REQUEST_ID_HEADER, ensure_request_id())
        return response


__all__ = ["configure_logging", "init_app", "ensure_request_id", "log_event", "JSONFormatter"]
