"""Environment-driven settings for the auth service and its sibling services."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Final

from dotenv import load_dotenv

#: Selects the settings class: ``development`` | ``testing`` | ``production``.
ENV_VAR: Final[str] = "APP_ENV"

#: Placeholder secret; production refuses to start with it.
DEFAULT_JWT_SECRET: Final[str] = "CHANGE_ME_JWT_SECRET_AT_LEAST_32_BYTES"

_TRUTHY = frozenset({"1", "true", "yes", "y", "on"})

# A local .env is optional.
load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    """Read a boolean flag from the environment.

    Parameters
    ----------
    name: str
        Variable name.
    default: bool, optional
        Returned when the variable is absent.

    Returns
    -------
    bool
        ``True`` for ``1/true/yes/y/on`` (any case), ``False`` for any other
        value that is present.
    """
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


def env_int(name: str, default: int) -> int:
    """Read an integer from the environment; blank or missing gives ``default``."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


class BaseConfig:
    """Settings shared by every environment.

    Attributes
    ----------
    JWT_SECRET_KEY: str
        Shared signing secret. Every service that validates sessions must be
        started with the same value.
    JWT_ALGORITHM: str
        HMAC algorithm expected in every token header.
    JWT_ISSUER: str
        Value stamped in the ``iss`` claim of issued tokens.
    ACCESS_TOKEN_EXPIRES_MINUTES / REFRESH_TOKEN_EXPIRES_DAYS: int
        Lifetimes of the two session tokens minted per authentication.
    PASSWORD_HASH_METHOD: str
        Werkzeug hashing method (``scrypt`` by default).
    OPAQUE_TOKEN_LENGTH: int
        Length of verification/reset tokens (base62 characters).
    VERIFY_TOKEN_TTL_HOURS / RESET_TOKEN_TTL_MINUTES: int
        Lifetimes of pending flow tokens; ``0`` disables expiry.
    REQUIRE_VERIFIED_SIGNIN: bool
        Refuse signin for accounts that never confirmed their email.
    AUTH_COOKIE_SECURE / AUTH_COOKIE_SAMESITE:
        Attributes of the ``access_token`` and ``refresh_token`` cookies.
    FRONTEND_BASE_URL: str
        Base used to build the links embedded in emails.
    MAIL_BACKEND: str
        ``logging`` (default) or ``outbox`` (in-memory, tests).
    REDIS_URL: str | None
        Enables the token denylist when set.
    SQLALCHEMY_DATABASE_URI: str
        Credential store connection string.
    LOG_LEVEL: str
        Root logger level.
    CORS_ORIGINS: str
        Comma-separated origins allowed to send credentialed requests.
    """

    API_BASE_PREFIX = "/api"
    APP_VERSION = os.getenv("APP_VERSION", "dev")

    # Session tokens
    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", DEFAULT_JWT_SECRET)
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ISSUER = os.getenv("JWT_ISSUER", "auth.service")
    JWT_LEEWAY_SECONDS = env_int("JWT_LEEWAY_SECONDS", 0)
    ACCESS_TOKEN_EXPIRES_MINUTES = env_int("ACCESS_TOKEN_EXPIRES_MINUTES", 15)
    REFRESH_TOKEN_EXPIRES_DAYS = env_int("REFRESH_TOKEN_EXPIRES_DAYS", 7)

    # Credentials and flow tokens
    PASSWORD_HASH_METHOD = os.getenv("PASSWORD_HASH_METHOD", "scrypt")
    OPAQUE_TOKEN_LENGTH = env_int("OPAQUE_TOKEN_LENGTH", 16)
    VERIFY_TOKEN_TTL_HOURS = env_int("VERIFY_TOKEN_TTL_HOURS", 72)
    RESET_TOKEN_TTL_MINUTES = env_int("RESET_TOKEN_TTL_MINUTES", 60)
    REQUIRE_VERIFIED_SIGNIN = env_bool("REQUIRE_VERIFIED_SIGNIN", False)

    # Cookies
    AUTH_COOKIE_SECURE = env_bool("AUTH_COOKIE_SECURE", False)
    AUTH_COOKIE_SAMESITE = os.getenv("AUTH_COOKIE_SAMESITE", "Lax")

    # Mail
    FRONTEND_BASE_URL = os.getenv("FRONTEND_BASE_URL", "http://localhost:3000")
    MAIL_BACKEND = os.getenv("MAIL_BACKEND", "logging")
    MAIL_SENDER = os.getenv("MAIL_SENDER", "no-reply@bearchat.local")

    # Denylist
    REDIS_URL = os.getenv("REDIS_URL") or None

    # Credential store
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./bearchat.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)

    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:3000")

    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Local development: debug on unless ``FLASK_DEBUG`` says otherwise."""

    DEBUG = env_bool("FLASK_DEBUG", True)
    CORS_MAX_AGE = 600


class TestingConfig(BaseConfig):
    """Automated tests.

    Notes
    -----
    - In-memory SQLite unless ``TEST_DATABASE_URL`` is set.
    - Cheap PBKDF2 rounds instead of ``scrypt``.
    - Mail is recorded in memory and no denylist is configured.
    """

    TESTING = True
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    PASSWORD_HASH_METHOD = "pbkdf2:sha256:1000"
    MAIL_BACKEND = "outbox"
    REDIS_URL = None


class ProductionConfig(BaseConfig):
    """Production deployments.

    Notes
    -----
    Cookies default to ``Secure`` and the app factory rejects the placeholder
    or short ``JWT_SECRET_KEY``.
    """

    SQLALCHEMY_ECHO = False
    AUTH_COOKIE_SECURE = env_bool("AUTH_COOKIE_SECURE", True)


CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config(name: str | None = None) -> type[BaseConfig]:
    """Return the settings class for ``name`` (default: ``$APP_ENV``).

    Unknown or missing names fall back to :class:`DevelopmentConfig`.
    """
    key = (name if name is not None else os.getenv(ENV_VAR, "development")).strip().lower()
    return CONFIG_MAP.get(key, DevelopmentConfig)
