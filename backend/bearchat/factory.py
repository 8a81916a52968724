"""Application factory wiring Flask extensions and blueprints."""

from __future__ import annotations

from flask import Flask

from bearchat.core.config import DEFAULT_JWT_SECRET, BaseConfig, get_config
from bearchat.core.logger import configure_logging, init_app as init_logging

#: HS256 keys shorter than this are rejected by PyJWT's key-length check.
MIN_SECRET_BYTES = 32


def _check_secrets(app: Flask) -> None:
    """Refuse to boot a production app with a placeholder or short signing secret."""
    secret = app.config.get("JWT_SECRET_KEY") or ""
    if app.debug or app.testing:
        return
    if secret == DEFAULT_JWT_SECRET or len(secret.encode()) < MIN_SECRET_BYTES:
        raise RuntimeError(
            "JWT_SECRET_KEY must be set to a random value of at least "
            f"{MIN_SECRET_BYTES} bytes outside development and testing."
        )


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
) -> Flask:
    """Build and configure the Flask application.

    Every BearChat service builds its app through this factory; services that
    share ``JWT_SECRET_KEY`` and ``JWT_ALGORITHM`` accept each other's tokens.
    """

    app = Flask(__name__, instance_relative_config=instance_relative_config)

    app.config.from_object(get_config() if config is None else config)
    if instance_relative_config and instance_config_filename:
        app.config.from_pyfile(instance_config_filename, silent=True)

    _check_secrets(app)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    from bearchat.core import proxy

    proxy.init_app(app)

    from bearchat.core import extensions

    extensions.init_app(app)

    init_logging(app)

    from bearchat.core import cors

    cors.init_app(app)

    from bearchat.api import init_app as init_api

    init_api(app)

    from bearchat.core import errors

    errors.init_app(app)

    from bearchat import cli as app_cli

    app_cli.init_app(app)

    return app
