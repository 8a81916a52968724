"""Global Flask extension instances and initialization helpers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import cast

import redis  # type: ignore[import-untyped]
from flask import Flask, current_app
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy import MetaData

from bearchat.infra.jwt.pyjwt_token_codec import PyJWTTokenCodec
from bearchat.infra.mail.logging_mailer import LoggingMailer
from bearchat.infra.redis.redis_denylist_store import RedisTokenDenylistStore
from bearchat.infra.security.werkzeug_password_hasher import WerkzeugPasswordHasher
from bearchat.services._shared.ports import (
    IdentityResolver,
    Mailer,
    OpaqueTokenGenerator,
    OutboxMailer,
    PasswordHasher,
    RandomTokenGenerator,
    TokenCodec,
    TokenDenylistStore,
)
from bearchat.services.auth.dto import FlowTokenConfig, SessionConfig
from bearchat.services.identity.service import SessionValidator

# Global naming convention for all constraints
convention = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)

# Global singletons (import-safe)
db: SQLAlchemy = SQLAlchemy(session_options={"autoflush": False}, metadata=metadata)
migrate = Migrate(render_as_batch=True)
redis_client: redis.Redis | None = None

AUTH_EXTENSION = "bearchat.auth"


@dataclass(slots=True)
class AuthComponents:
    """
    Read-only collaborators built once per app and shared by all requests.

    Tests replace individual members (e.g. ``identity``) on
    ``app.extensions["bearchat.auth"]`` instead of patching module globals.
    """

    codec: TokenCodec
    hasher: PasswordHasher
    mailer: Mailer
    token_generator: OpaqueTokenGenerator
    identity: IdentityResolver
    session_cfg: SessionConfig
    flow_cfg: FlowTokenConfig
    denylist: TokenDenylistStore | None = None


def _ttl(value: int, unit: str) -> timedelta | None:
    """Convert a configured lifetime to a timedelta; ``0`` (or less) disables expiry."""
    if value <= 0:
        return None
    return timedelta(**{unit: value})


def _build_mailer(app: Flask) -> Mailer:
    backend = str(app.config.get("MAIL_BACKEND", "logging")).lower()
    if backend == "outbox":
        return OutboxMailer()
    if backend == "logging":
        return LoggingMailer(sender=app.config.get("MAIL_SENDER", "no-reply@bearchat.local"))
    raise RuntimeError(f"Unknown MAIL_BACKEND {backend!r}")


def build_auth_components(app: Flask) -> AuthComponents:
    """Build the auth collaborators from the app configuration."""
    cfg = app.config
    codec = PyJWTTokenCodec(
        cfg["JWT_SECRET_KEY"],
        algorithm=cfg.get("JWT_ALGORITHM", "HS256"),
        leeway=int(cfg.get("JWT_LEEWAY_SECONDS", 0)),
    )
    denylist = RedisTokenDenylistStore(redis_client) if redis_client is not None else None

    return AuthComponents(
        codec=codec,
        hasher=WerkzeugPasswordHasher(method=cfg.get("PASSWORD_HASH_METHOD", "scrypt")),
        mailer=_build_mailer(app),
        token_generator=RandomTokenGenerator(int(cfg.get("OPAQUE_TOKEN_LENGTH", 16))),
        identity=SessionValidator(codec=codec, denylist=denylist),
        session_cfg=SessionConfig(
            access_expires=timedelta(minutes=int(cfg.get("ACCESS_TOKEN_EXPIRES_MINUTES", 15))),
            refresh_expires=timedelta(days=int(cfg.get("REFRESH_TOKEN_EXPIRES_DAYS", 7))),
            issuer=cfg.get("JWT_ISSUER", "auth.service"),
            require_verified=bool(cfg.get("REQUIRE_VERIFIED_SIGNIN", False)),
        ),
        flow_cfg=FlowTokenConfig(
            verification_ttl=_ttl(int(cfg.get("VERIFY_TOKEN_TTL_HOURS", 72)), "hours"),
            reset_ttl=_ttl(int(cfg.get("RESET_TOKEN_TTL_MINUTES", 60)), "minutes"),
            link_base=cfg.get("FRONTEND_BASE_URL", "http://localhost:3000"),
        ),
        denylist=denylist,
    )


def init_app(app: Flask) -> None:
    """Initialize SQLAlchemy, migrations, the optional Redis client and auth components.

    Parameters
    ----------
    app: flask.Flask
        Application used to bind extension instances. This call imports the
        :mod:`bearchat.models` package so SQLAlchemy metadata is ready for
        migrations.
    """
    db.init_app(app)

    # Ensure models are imported so Alembic sees metadata
    from bearchat import models as _models  # noqa: F401

    migrate.init_app(app, db)

    global redis_client
    redis_url = app.config.get("REDIS_URL")
    if not redis_url:
        redis_client = None
        app.extensions.pop("redis_client", None)
    else:
        redis_client = redis.Redis.from_url(redis_url)
        try:
            redis_client.ping()
        except RedisError as exc:
            raise RuntimeError(f"Failed to connect to Redis at {redis_url!r}") from exc
        app.extensions["redis_client"] = redis_client

    app.extensions[AUTH_EXTENSION] = build_auth_components(app)


def get_redis() -> redis.Redis:
    """Return the initialized Redis client."""
    if redis_client is None:
        raise RuntimeError("Redis client is not initialized. Call init_app() first.")
    return redis_client


def get_auth_components(app: Flask | None = None) -> AuthComponents:
    """Return the auth components of ``app`` (default: the current app)."""
    target = app or current_app
    try:
        return cast(AuthComponents, target.extensions[AUTH_EXTENSION])
    except KeyError as exc:
        raise RuntimeError("Auth components are not initialized. Call init_app() first.") from exc
