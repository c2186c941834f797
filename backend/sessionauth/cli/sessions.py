"""Flask CLI commands for refresh-session housekeeping."""

from __future__ import annotations

import logging

import click
from flask.cli import with_appcontext

from sessionauth.wiring import auth_service

LOGGER = logging.getLogger(__name__)


@click.group("sessions", help="Refresh session maintenance commands.")
def sessions_cli() -> None:
    """Root command group for session maintenance."""


@sessions_cli.command("purge-expired")
@with_appcontext
def purge_expired() -> None:
    """Delete every session whose expiry is in the past."""
    removed = auth_service().sessions.delete_expired()
    LOGGER.info("sessions.purged", extra={"removed": removed})
    click.echo(f"Purged {removed} expired session(s).")


@sessions_cli.command("revoke-user")
@click.argument("user_id", type=click.IntRange(min=1))
@with_appcontext
def revoke_user(user_id: int) -> None:
    """Revoke every active session of USER_ID."""
    count = auth_service().revoke_all_sessions(user_id)
    click.echo(f"Revoked {count} session(s) for user {user_id}.")
