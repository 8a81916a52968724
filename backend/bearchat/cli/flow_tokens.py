"""Flask CLI commands maintaining the credential store."""

from __future__ import annotations

import logging

import click
from flask.cli import with_appcontext

from bearchat.core.extensions import get_auth_components
from bearchat.services._shared.base import now_utc
from bearchat.uow import SQLAlchemyUnitOfWork

LOGGER = logging.getLogger(__name__)


@click.group("auth")
def auth_cli() -> None:
    """Credential and session maintenance commands."""


@auth_cli.command("purge-flow-tokens")
@click.option("--verbose", is_flag=True, help="Log the cutoffs being applied.")
@with_appcontext
def purge_flow_tokens(verbose: bool) -> None:
    """Clear verification and reset tokens older than their configured TTL."""
    flow_cfg = get_auth_components().flow_cfg
    now = now_utc()
    verify_cutoff = now - flow_cfg.verification_ttl if flow_cfg.verification_ttl else None
    reset_cutoff = now - flow_cfg.reset_ttl if flow_cfg.reset_ttl else None

    if verify_cutoff is None and reset_cutoff is None:
        click.echo("Flow token expiry is disabled; nothing to purge.")
        return
    if verbose:
        LOGGER.info("purge cutoffs verify=%s reset=%s", verify_cutoff, reset_cutoff)

    with SQLAlchemyUnitOfWork() as uow:
        cleared = uow.credentials.clear_expired_flow_tokens(
            verify_cutoff=verify_cutoff, reset_cutoff=reset_cutoff
        )
    click.echo(f"Cleared {cleared} expired flow token(s).")
