"""Health check endpoint."""

from __future__ import annotations

from flask import Blueprint, current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from bearchat.api.deps import json_response, timing
from bearchat.core.extensions import db, get_auth_components

bp = Blueprint("health", __name__)


@bp.get("/health")
@timing
def healthcheck():
    """Return application, database and denylist health information."""

    db_status = "ok"
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        current_app.logger.exception("healthcheck.db_error")
        db_status = "fail"
    denylist = "enabled" if get_auth_components().denylist is not None else "disabled"
    payload = {
        "status": "ok",
        "db": db_status,
        "denylist": denylist,
        "version": current_app.config.get("APP_VERSION", "dev"),
    }
    return json_response(payload)
