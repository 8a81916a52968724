"""RFC 7807 problem+json rendering for every error the API can produce."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from flask import Flask, Response, jsonify, request
from marshmallow import ValidationError as MarshmallowValidationError
from sqlalchemy.exc import IntegrityError, OperationalError
from werkzeug.exceptions import HTTPException

from bearchat.core.logger import ensure_request_id

log = logging.getLogger(__name__)

PROBLEM_MIMETYPE = "application/problem+json"

#: Stable machine-readable codes per status; anything else becomes ``"error"``.
STATUS_CODES: dict[int, str] = {
    400: "bad_request",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    409: "conflict",
    415: "unsupported_media_type",
    422: "unprocessable_entity",
    500: "internal_server_error",
    503: "service_unavailable",
}


def problem(
    status: int,
    message: str,
    *,
    code: str | None = None,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Build a Problem Details body for the current request.

    :param status: HTTP status code.
    :param message: Client-safe summary, rendered as ``detail``.
    :param code: Machine-readable code; derived from ``status`` when omitted.
    :param details: Optional structured, client-safe payload.
    """
    status = int(status)
    body: dict[str, Any] = {
        "type": "about:blank",
        "title": HTTPStatus(status).phrase,
        "status": status,
        "detail": message,
        "instance": request.path if request else None,
        "code": code or STATUS_CODES.get(status, "error"),
        "request_id": ensure_request_id(),
    }
    if details:
        body["details"] = details
    return body


def _respond(body: dict[str, Any], *, exc_info: bool = False) -> tuple[Response, int]:
    status = body["status"]
    # 4xx are the caller's problem; 5xx are ours.
    level = logging.ERROR if status >= 500 else logging.WARNING
    log.log(
        level,
        "problem status=%s code=%s detail=%s request_id=%s",
        status,
        body["code"],
        body["detail"],
        body["request_id"],
        exc_info=exc_info,
    )
    resp = jsonify(body)
    resp.mimetype = PROBLEM_MIMETYPE
    return resp, status


class APIError(Exception):
    """
    An error that knows its HTTP rendering.

    Parameters
    ----------
    message : str
        Client-facing description.
    status_code : int, optional
        HTTP status. Defaults to ``400``.
    code : str, optional
        Machine-readable identifier. Defaults to ``"bad_request"``.
    details : dict[str, Any] | None, optional
        Extra structured payload.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        code: str = "bad_request",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = int(status_code)
        self.code = code
        self.details = details or {}

    def to_problem(self) -> dict[str, Any]:
        return problem(
            self.status_code, self.message, code=self.code, details=self.details or None
        )


class NotFound(APIError):
    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message, HTTPStatus.NOT_FOUND, "not_found")


class Conflict(APIError):
    def __init__(self, message: str = "Conflict") -> None:
        super().__init__(message, HTTPStatus.CONFLICT, "conflict")


class Unauthorized(APIError):
    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message, HTTPStatus.UNAUTHORIZED, "unauthorized")


class Forbidden(APIError):
    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(message, HTTPStatus.FORBIDDEN, "forbidden")


class ServiceUnavailable(APIError):
    """A collaborator (store, mailer, cache) is down. The detail stays generic."""

    def __init__(self, message: str = "Service temporarily unavailable") -> None:
        super().__init__(message, HTTPStatus.SERVICE_UNAVAILABLE, "service_unavailable")


class InternalError(APIError):
    """Generic 500; the cause only reaches the log."""

    def __init__(self, message: str = "Unexpected error") -> None:
        super().__init__(message, HTTPStatus.INTERNAL_SERVER_ERROR, "internal_server_error")


def init_app(app: Flask) -> None:
    """
    Register the problem+json error handlers on ``app``.

    Service-layer exceptions go through ``BaseService.translate_exceptions``,
    so views let them propagate. Database and unexpected errors never leak
    their message to clients.
    """
    from bearchat.services._shared.base import BaseService
    from bearchat.services._shared.errors import ServiceError

    @app.errorhandler(APIError)
    def handle_api_error(err: APIError):
        return _respond(err.to_problem())

    @app.errorhandler(ServiceError)
    def handle_service_error(err: ServiceError):
        api_err = BaseService.translate_exceptions(err)
        return _respond(api_err.to_problem(), exc_info=api_err.status_code >= 500)

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        status = int(err.code or HTTPStatus.INTERNAL_SERVER_ERROR)
        if status == HTTPStatus.NOT_FOUND:
            message = f"Route '{request.path}' not found"
        else:
            message = (err.description or HTTPStatus(status).phrase).strip()
        return _respond(problem(status, message))

    @app.errorhandler(MarshmallowValidationError)
    def handle_validation_error(err: MarshmallowValidationError):
        body = problem(
            HTTPStatus.UNPROCESSABLE_ENTITY,
            "Validation failed",
            code="validation_error",
            details={"errors": err.messages},
        )
        return _respond(body)

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        return _respond(problem(HTTPStatus.CONFLICT, "Resource conflict"), exc_info=True)

    @app.errorhandler(OperationalError)
    def handle_operational_error(err: OperationalError):
        body = problem(HTTPStatus.SERVICE_UNAVAILABLE, "Service temporarily unavailable")
        return _respond(body, exc_info=True)

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        body = problem(HTTPStatus.INTERNAL_SERVER_ERROR, "Unexpected error")
        return _respond(body, exc_info=True)
