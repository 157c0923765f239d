"""Email login links: request, one-time redemption and rejection paths."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest
from sqlalchemy import text

from roomchat.core.auth.models import LoginLink, SessionCredential
from roomchat.core.auth.session_services import SessionAuthority
from roomchat.core.errors import InvalidLoginLink
from roomchat.extensions import db
from roomchat.platform.outbox.models import OutboxMessage

pytestmark = pytest.mark.integration


def _emailed_token(user_id: int) -> str:
    message = (
        OutboxMessage.query.filter_by(event_type="auth.email.login_link", user_id=user_id)
        .order_by(OutboxMessage.id.desc())
        .first()
    )
    return message.payload["token"]


def _request(client, email):
    return client.post("/auth/login-link", json={"email": email})


def _verify(client, token):
    return client.post("/auth/login-link/verify", json={"token": token})


class TestRequestLink:
    def test_known_email_stages_email_event(self, client, make_user):
        user = make_user(email="link@example.com")

        resp = _request(client, "  Link@Example.com ")

        assert resp.status_code == 200
        token = _emailed_token(user.id)
        link = LoginLink.query.filter_by(user_id=user.id).one()
        assert link.token_hash != token
        assert link.used_at is None
        email = OutboxMessage.query.filter_by(event_type="auth.email.login_link").one()
        assert email.payload["email"] == "link@example.com"
        assert email.payload["link_url"] == f"https://chat.example.test/login/verify?token={token}"

    def test_unknown_email_looks_the_same(self, client, make_user):
        make_user(email="known@example.com")

        known = _request(client, "known@example.com")
        unknown = _request(client, "ghost@example.com")

        assert known.status_code == unknown.status_code == 200
        assert known.get_json() == unknown.get_json()
        assert LoginLink.query.count() == 1
        assert OutboxMessage.query.filter_by(event_type="auth.email.login_link").count() == 1
        requested = OutboxMessage.query.filter_by(event_type="auth.login_link.requested", user_id=None).one()
        assert requested.payload["email"] == "ghost@example.com"

    def test_inactive_account_gets_no_link(self, app, make_user):
        make_user(email="gone@example.com", is_active=False)

        SessionAuthority().request_login_link("gone@example.com")

        assert LoginLink.query.count() == 0

    def test_missing_url_sends_bare_token(self, app, make_user):
        app.config["LOGIN_LINK_URL"] = None
        user = make_user()

        SessionAuthority().request_login_link(user.email)

        email = OutboxMessage.query.filter_by(event_type="auth.email.login_link").one()
        assert email.payload["link_url"] is None
        assert email.payload["token"]

    def test_bad_email_is_validation_error(self, client):
        resp = _request(client, "not-an-email")

        assert resp.status_code == 400
        assert resp.get_json()["error"] == "validation_error"


class TestRedeemLink:
    def test_link_opens_a_usable_session(self, client, make_user):
        user = make_user()
        _request(client, user.email)

        resp = _verify(client, _emailed_token(user.id))

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["user"]["id"] == user.id
        me = client.get("/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
        assert me.status_code == 200
        assert me.get_json()["session_id"] == body["session_id"]
        credential = SessionCredential.query.filter_by(session_id=body["session_id"]).one()
        assert credential.owner_id == user.id
        created = OutboxMessage.query.filter_by(event_type="auth.session.created").one()
        assert created.payload["via"] == "login_link"

    def test_link_works_only_once(self, client, make_user):
        user = make_user()
        _request(client, user.email)
        token = _emailed_token(user.id)

        assert _verify(client, token).status_code == 200
        resp = _verify(client, token)

        assert resp.status_code == 400
        assert resp.get_json()["error"] == "invalid_login_link"
        assert SessionCredential.query.filter_by(owner_id=user.id).count() == 1

    def test_unknown_token_is_rejected(self, client):
        resp = _verify(client, "not-a-real-token")

        assert resp.status_code == 400
        assert resp.get_json() == {
            "ok": False,
            "error": "invalid_login_link",
            "message": "login link is invalid or expired",
        }

    def test_expired_link_is_rejected_and_counted(self, app, make_user):
        user = make_user()
        authority = SessionAuthority()
        authority.request_login_link(user.email)
        link = LoginLink.query.filter_by(user_id=user.id).one()
        link.expires_at = datetime.utcnow() - timedelta(seconds=1)
        db.session.commit()

        with pytest.raises(InvalidLoginLink):
            authority.login_with_link(_emailed_token(user.id))

        db.session.refresh(link)
        assert link.attempts == 1
        assert link.used_at is None
        assert SessionCredential.query.count() == 0

    def test_exhausted_attempts_lock_the_link(self, app, make_user):
        user = make_user()
        authority = SessionAuthority()
        authority.request_login_link(user.email)
        link = LoginLink.query.filter_by(user_id=user.id).one()
        link.attempts = app.config["LOGIN_LINK_MAX_ATTEMPTS"]
        db.session.commit()

        with pytest.raises(InvalidLoginLink):
            authority.login_with_link(_emailed_token(user.id))

    def test_deactivated_user_cannot_redeem(self, app, make_user):
        user = make_user()
        authority = SessionAuthority()
        authority.request_login_link(user.email)
        user.is_active = False
        db.session.commit()

        with pytest.raises(InvalidLoginLink):
            authority.login_with_link(_emailed_token(user.id))
        assert SessionCredential.query.count() == 0

    def test_concurrent_redemption_opens_one_session(self, app, make_user):
        user = make_user()
        authority = SessionAuthority()
        authority.request_login_link(user.email)
        token = _emailed_token(user.id)
        # Held so the session keeps its unused view of the row.
        link = LoginLink.query.filter_by(user_id=user.id).one()
        assert link.used_at is None
        # Another worker redeems the link behind this session's back.
        db.session.execute(text("UPDATE login_link SET used_at = CURRENT_TIMESTAMP"))
        db.session.commit()

        with pytest.raises(InvalidLoginLink):
            authority.login_with_link(token)
        assert SessionCredential.query.count() == 0
