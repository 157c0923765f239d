"""Tests for the admin revoke-sessions and dispatch-outbox commands."""

from __future__ import annotations

import pytest

from roomchat.core.auth.models import SessionCredential
from roomchat.platform.outbox.models import OutboxMessage

pytestmark = pytest.mark.integration


def test_revoke_by_user_id(app, make_user, login):
    user = make_user()
    login(user)
    login(user)

    result = app.test_cli_runner().invoke(args=["revoke-sessions", "--user-id", str(user.id), "--reason", "ops reset"])

    assert result.exit_code == 0, result.output
    assert "revoked=2" in result.output
    assert SessionCredential.query.filter_by(owner_id=user.id, is_live=True).count() == 0


def test_revoke_by_email(app, make_user, login):
    user = make_user(email="target@example.com")
    login(user)

    result = app.test_cli_runner().invoke(
        args=["revoke-sessions", "--email", "TARGET@example.com", "--reason", "leaked token"]
    )

    assert result.exit_code == 0, result.output
    assert f"user_id={user.id}" in result.output


def test_revoke_requires_target(app):
    result = app.test_cli_runner().invoke(args=["revoke-sessions", "--reason", "ops"])

    assert result.exit_code != 0
    assert "Provide --user-id or --email" in result.output


def test_revoke_rejects_blank_reason(app, make_user):
    user = make_user()

    result = app.test_cli_runner().invoke(args=["revoke-sessions", "--user-id", str(user.id), "--reason", "  "])

    assert result.exit_code != 0


def test_revoke_unknown_user(app):
    result = app.test_cli_runner().invoke(args=["revoke-sessions", "--user-id", "4242", "--reason", "ops"])

    assert result.exit_code != 0
    assert "User 4242 not found" in result.output


def test_dispatch_outbox_command(app, make_user, login):
    login(make_user())

    result = app.test_cli_runner().invoke(args=["dispatch-outbox"])

    assert result.exit_code == 0, result.output
    assert "sent=1" in result.output
    assert OutboxMessage.query.filter_by(event_type="auth.session.created", status="sent").count() == 1
