"""Version 1 of the BearChat auth API."""

from __future__ import annotations

from flask import Blueprint

API_VERSION = "v1"

from .auth import bp as auth_bp  # noqa: E402
from .health import bp as health_bp  # noqa: E402

#: ``(blueprint, prefix under /api/v1)``; downstream services append theirs.
REGISTRY: list[tuple[Blueprint, str]] = [
    (health_bp, ""),
    (auth_bp, "/auth"),
]
