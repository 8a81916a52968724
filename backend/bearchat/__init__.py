"""Expose the application factory at package level.

Provide convenient access to :func:`bearchat.factory.create_app` so callers
can ``from bearchat import create_app`` (``flask --app bearchat run``).
"""

from __future__ import annotations

from .factory import create_app

__all__ = ["create_app"]
