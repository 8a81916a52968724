"""Pytest fixtures configuring an isolated transactional database layer.

Each test runs inside a SAVEPOINT-backed transaction against an in-memory
SQLite database so data changes never leak between cases. Service commits
release the SAVEPOINT only; the outer transaction is rolled back at the end.
"""

from __future__ import annotations

import os

import pytest
from bearchat.core.config import TestingConfig
from bearchat.core.extensions import db as _db
from bearchat.core.extensions import get_auth_components
from bearchat.factory import create_app
from bearchat.infra.jwt.pyjwt_token_codec import PyJWTTokenCodec
from bearchat.infra.security.werkzeug_password_hasher import WerkzeugPasswordHasher
from bearchat.services._shared.ports import (
    InMemoryDenylistStore,
    OutboxMailer,
)
from bearchat.services.auth.dto import FlowTokenConfig, SessionConfig
from bearchat.services.auth.service import SessionIssuer
from bearchat.services.identity.service import SessionValidator
from bearchat.services.password_reset.service import ResetFlow
from bearchat.services.verification.service import VerificationFlow
from sqlalchemy import event
from sqlalchemy.orm import scoped_session, sessionmaker
from tests.helpers.tokens import SequenceTokenGenerator

TEST_SECRET = "test-secret-key-with-at-least-32-bytes!"


class TestConfig(TestingConfig):
    """Testing configuration with a fixed signing secret and cheap hashing."""

    JWT_SECRET_KEY = TEST_SECRET
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    USE_PROXYFIX = False
    LOG_LEVEL = "WARNING"


@pytest.fixture(scope="session")
def app():
    """Create a Flask application configured for testing."""
    os.environ.pop("DATABASE_URL", None)
    return create_app(TestConfig)


@pytest.fixture(scope="session")
def db(app):
    """Create database tables once per test session."""
    with app.app_context():
        _db.create_all()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope="session")
def connection(db):
    """Keep a dedicated connection open for the whole session.

    pysqlite's own transaction handling lets ``RELEASE SAVEPOINT`` commit
    when the SAVEPOINT opened the transaction; driving ``BEGIN`` ourselves
    keeps the outer transaction (and its rollback) real.
    """
    conn = db.engine.connect()
    conn.connection.dbapi_connection.isolation_level = None

    @event.listens_for(conn, "begin")
    def _do_begin(c):  # pragma: no cover - driver glue
        c.exec_driver_sql("BEGIN")

    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="function")
def session(db, connection):
    """Provide a SQLAlchemy session wrapped in an outer transaction.

    The session joins the connection's transaction in ``create_savepoint``
    mode, so ``commit()``/``rollback()`` issued by units of work only touch a
    SAVEPOINT. ``db.session`` is swapped so application code uses it.
    """
    outer = connection.begin()
    scoped = scoped_session(
        sessionmaker(bind=connection, join_transaction_mode="create_savepoint")
    )

    original_session = db.session
    db.session = scoped
    try:
        yield scoped
    finally:
        scoped.remove()
        db.session = original_session
        outer.rollback()


@pytest.fixture(scope="session")
def faker():
    """Provide a :class:`faker.Faker` instance seeded for deterministic tests."""
    from faker import Faker

    fk = Faker()
    Faker.seed(1337)
    return fk


# -- Hook up Factory Boy to pytest SQLAlchemy session --------------------------
@pytest.fixture(autouse=True)
def _factories_session(session):
    """Wire Factory Boy's session helper to the transactional session fixture."""
    from tests.factories import SQLAlchemySession

    SQLAlchemySession.set(session)
    yield


# -- Collaborators ------------------------------------------------------------
@pytest.fixture()
def codec() -> PyJWTTokenCodec:
    return PyJWTTokenCodec(TEST_SECRET)


@pytest.fixture()
def hasher() -> WerkzeugPasswordHasher:
    return WerkzeugPasswordHasher(method="pbkdf2:sha256:1000")


@pytest.fixture()
def mailer() -> OutboxMailer:
    return OutboxMailer()


@pytest.fixture()
def token_generator() -> SequenceTokenGenerator:
    return SequenceTokenGenerator()


@pytest.fixture()
def denylist() -> InMemoryDenylistStore:
    return InMemoryDenylistStore()


@pytest.fixture()
def flow_cfg() -> FlowTokenConfig:
    return FlowTokenConfig(link_base="https://bearchat.test")


@pytest.fixture()
def issuer(codec, hasher, mailer, token_generator, flow_cfg) -> SessionIssuer:
    """SessionIssuer without a denylist (the default deployment)."""
    return SessionIssuer(
        codec=codec,
        hasher=hasher,
        mailer=mailer,
        token_generator=token_generator,
        cfg=SessionConfig(),
        flow_cfg=flow_cfg,
    )


@pytest.fixture()
def validator(codec) -> SessionValidator:
    return SessionValidator(codec=codec)


@pytest.fixture()
def verification(flow_cfg) -> VerificationFlow:
    return VerificationFlow(ttl=flow_cfg.verification_ttl)


@pytest.fixture()
def reset(hasher, mailer, token_generator, flow_cfg) -> ResetFlow:
    return ResetFlow(
        hasher=hasher,
        mailer=mailer,
        token_generator=token_generator,
        ttl=flow_cfg.reset_ttl,
        link_base=flow_cfg.link_base,
    )


# -- HTTP ---------------------------------------------------------------------
@pytest.fixture()
def client(app, session):
    """Flask test client sharing the transactional session."""
    return app.test_client()


@pytest.fixture()
def outbox(app) -> OutboxMailer:
    """The app's in-memory mailer, emptied for each test."""
    mailer = get_auth_components(app).mailer
    assert isinstance(mailer, OutboxMailer)
    mailer.outbox.clear()
    mailer.fail_with = None
    return mailer
