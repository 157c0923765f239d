"""Session authority: login, logout and admin revocation."""

from __future__ import annotations

import pytest

from roomchat.core.auth.models import SessionCredential
from roomchat.core.auth.session_services import SessionAuthority
from roomchat.core.auth.token_codec import TokenCodec
from roomchat.core.errors import InvalidCredentials, NotFound, UserNotFound
from roomchat.platform.outbox.models import OutboxMessage

pytestmark = pytest.mark.integration


class TestLogin:
    def test_login_persists_live_credential_for_issued_token(self, app, make_user):
        user = make_user(email="alice@example.com")

        result = SessionAuthority().login("alice@example.com", "secret123")

        credential = SessionCredential.query.filter_by(session_id=result.session_id).one()
        assert credential.owner_id == user.id
        assert credential.token_value == result.token
        assert credential.is_live is True
        assert result.user.id == user.id
        claims = TokenCodec().verify(result.token)
        assert claims.session_id == result.session_id
        assert claims.user_id == user.id

    def test_login_email_is_case_insensitive(self, app, make_user):
        make_user(email="bob@example.com")

        result = SessionAuthority().login("  BOB@Example.com ", "secret123")

        assert result.token

    def test_wrong_password_and_unknown_email_are_indistinguishable(self, app, make_user):
        make_user(email="carol@example.com")
        authority = SessionAuthority()

        with pytest.raises(InvalidCredentials) as wrong_password:
            authority.login("carol@example.com", "not-the-password1")
        with pytest.raises(InvalidCredentials) as unknown_email:
            authority.login("nobody@example.com", "secret123")

        assert type(wrong_password.value) is type(unknown_email.value)
        assert str(wrong_password.value) == str(unknown_email.value)
        assert wrong_password.value.to_dict() == unknown_email.value.to_dict()

    def test_failed_login_creates_no_credential(self, app, make_user):
        make_user(email="dave@example.com")

        with pytest.raises(InvalidCredentials):
            SessionAuthority().login("dave@example.com", "wrong-password1")

        assert SessionCredential.query.count() == 0

    def test_inactive_user_cannot_login(self, app, make_user):
        make_user(email="eve@example.com", is_active=False)

        with pytest.raises(InvalidCredentials):
            SessionAuthority().login("eve@example.com", "secret123")

    def test_multiple_live_sessions_per_user(self, app, make_user, login):
        user = make_user()

        first = login(user)
        second = login(user)

        assert first.session_id != second.session_id
        assert SessionCredential.query.filter_by(owner_id=user.id, is_live=True).count() == 2

    def test_login_enqueues_session_created(self, app, make_user, login):
        user = make_user()

        result = login(user)

        message = OutboxMessage.query.filter_by(event_type="auth.session.created", user_id=user.id).one()
        assert message.payload["session_id"] == result.session_id
        assert message.payload["via"] == "password"


class TestLogout:
    def test_logout_revokes_only_that_session(self, app, make_user, login):
        user = make_user()
        first = login(user)
        second = login(user)

        SessionAuthority().logout(first.session_id, user.id)

        assert SessionCredential.query.filter_by(session_id=first.session_id).one().is_live is False
        assert SessionCredential.query.filter_by(session_id=second.session_id).one().is_live is True
        assert OutboxMessage.query.filter_by(event_type="auth.session.revoked").count() == 1

    def test_logout_unknown_session_raises_not_found(self, app, make_user):
        user = make_user()

        with pytest.raises(NotFound):
            SessionAuthority().logout("does-not-exist", user.id)


class TestRevokeAll:
    def test_revoke_all_returns_count_and_enqueues_reset(self, app, make_user, login):
        user = make_user()
        login(user)
        login(user)

        count = SessionAuthority().revoke_all(user.id, reason="ops reset")

        assert count == 2
        assert SessionCredential.query.filter_by(owner_id=user.id, is_live=True).count() == 0
        message = OutboxMessage.query.filter_by(event_type="auth.session.admin_reset", user_id=user.id).one()
        assert message.payload["reason"] == "ops reset"

    def test_revoke_all_requires_reason(self, app, make_user):
        user = make_user()

        with pytest.raises(ValueError):
            SessionAuthority().revoke_all(user.id, reason="   ")

    def test_revoke_all_unknown_user(self, app):
        with pytest.raises(UserNotFound):
            SessionAuthority().revoke_all(9999, reason="ops reset")
