"""Admin session revocation CLI (backend-only, no UI).

Usage examples:
    flask revoke-sessions --user-id=123 --reason="credential leak"
    flask revoke-sessions --email=user@example.com --reason="ops reset"
    python -m roomchat.scripts.revoke_sessions --user-id=123 --reason="ops reset"
"""

from __future__ import annotations

import sys

import click
from flask.cli import with_appcontext

from roomchat.core.auth.session_services import SessionAuthority
from roomchat.core.errors import StorageFailure, UserNotFound


@click.command("revoke-sessions")
@click.option("--user-id", type=int, help="Target user id")
@click.option("--email", type=str, help="Target user email (case-insensitive)")
@click.option("--reason", required=True, help="Reason for revocation (required)")
@with_appcontext
def revoke_sessions_command(user_id: int | None, email: str | None, reason: str):
    """Revoke every live session of a user and emit auth.session.admin_reset."""
    reason_clean = (reason or "").strip()
    if not reason_clean:
        click.echo("--reason is required", err=True)
        raise click.Abort()
    if not user_id and not email:
        click.echo("Provide --user-id or --email", err=True)
        raise click.Abort()

    from roomchat.core.users.services import find_by_email

    target_user_id = user_id
    if email and not target_user_id:
        user = find_by_email(email)
        if not user:
            click.echo(f"User with email {email.strip().lower()} not found", err=True)
            raise click.Abort()
        target_user_id = user.id

    try:
        count = SessionAuthority().revoke_all(target_user_id, reason=reason_clean)
    except UserNotFound:
        click.echo(f"User {target_user_id} not found", err=True)
        raise click.Abort()
    except StorageFailure:
        click.echo("Storage failure while revoking sessions; nothing was changed", err=True)
        raise click.Abort()

    click.echo(f"revoke_sessions ok: user_id={target_user_id} revoked={count} reason=\"{reason_clean}\"")


@click.command("dispatch-outbox")
@click.option("--limit", type=int, default=50, show_default=True, help="Maximum messages per batch")
@with_appcontext
def dispatch_outbox_command(limit: int):
    """Publish ready outbox messages to the in-process event bus."""
    from roomchat.platform.outbox import dispatch_ready

    report = dispatch_ready(limit=limit)
    click.echo(
        f"dispatch_outbox ok: sent={len(report.sent)} retrying={len(report.retrying)} dead={len(report.dead)}"
    )


def register_commands(app):
    """Register CLI commands with the app."""
    app.cli.add_command(revoke_sessions_command)
    app.cli.add_command(dispatch_outbox_command)


def main(argv: list[str] | None = None) -> int:
    """Entry point for python -m roomchat.scripts.revoke_sessions."""
    from roomchat import create_app

    app = create_app()
    with app.app_context():
        try:
            revoke_sessions_command.main(standalone_mode=False, args=argv)
        except SystemExit as exc:
            return exc.code if isinstance(exc.code, int) else 1
        except click.Abort:
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
