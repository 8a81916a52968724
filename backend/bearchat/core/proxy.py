"""WSGI proxy middleware configuration helper."""

from __future__ import annotations

from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix


def init_app(app: Flask) -> None:
    """Apply :class:`werkzeug.middleware.proxy_fix.ProxyFix` when enabled.

    The secure-cookie flag and generated URLs depend on the scheme seen by
    Flask, so deployments behind TLS-terminating proxies need this.

    ``USE_PROXYFIX`` (default ``True``) toggles the middleware;
    ``PROXYFIX_HOPS`` (default ``1``) is the number of trusted proxies.
    """
    if not app.config.get("USE_PROXYFIX", True):
        return
    hops = int(app.config.get("PROXYFIX_HOPS", 1))
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=hops, x_proto=hops, x_host=hops, x_prefix=hops)
