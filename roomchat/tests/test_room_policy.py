"""Resource authorization rules for room actions."""

from __future__ import annotations

import pytest

from roomchat.core.auth.middleware import VerifiedIdentity
from roomchat.core.errors import AlreadyMember, Forbidden, NotInRoom, NotMember, RoomNotFound, UserNotFound
from roomchat.domains.rooms.models.room_models import Room
from roomchat.domains.rooms.policy import (
    CREATE_ROOM,
    DELETE_ROOM,
    JOIN_ROOM,
    LEAVE_ROOM,
    POST_MESSAGE,
    READ_MESSAGES,
    UPDATE_ROOM,
    UPDATE_USERNAME,
    Decision,
    RoomPolicy,
)
from roomchat.domains.rooms.services.membership_ledger import MembershipLedger
from roomchat.extensions import db

pytestmark = pytest.mark.integration


def _identity(user) -> VerifiedIdentity:
    return VerifiedIdentity(user_id=user.id, session_id=f"session-{user.id}")


@pytest.fixture()
def setup(app, make_user):
    owner = make_user(username="owner")
    member = make_user(username="member")
    outsider = make_user(username="outsider")
    room = Room(name="lobby", owner_id=owner.id)
    db.session.add(room)
    db.session.commit()
    MembershipLedger().add(room.id, member.id, "member")
    db.session.commit()
    return owner, member, outsider, room


def test_create_room_allowed_for_any_identity(setup):
    _, _, outsider, _ = setup
    assert RoomPolicy().authorize(CREATE_ROOM, _identity(outsider)) == Decision(allowed=True)


@pytest.mark.parametrize("action", [UPDATE_ROOM, DELETE_ROOM])
def test_owner_only_actions(setup, action):
    owner, member, outsider, room = setup
    policy = RoomPolicy()

    assert policy.authorize(action, _identity(owner), room_id=room.id).allowed is True
    for caller in (member, outsider):
        decision = policy.authorize(action, _identity(caller), room_id=room.id)
        assert decision.allowed is False
        assert isinstance(decision.error, Forbidden)


@pytest.mark.parametrize("action", [UPDATE_ROOM, DELETE_ROOM])
def test_owner_only_actions_on_missing_room(setup, action):
    owner, _, _, _ = setup
    with pytest.raises(RoomNotFound):
        RoomPolicy().require(action, _identity(owner), room_id=9999)


@pytest.mark.parametrize("action", [POST_MESSAGE, READ_MESSAGES])
def test_messaging_requires_membership(setup, action):
    owner, member, outsider, room = setup
    policy = RoomPolicy()

    assert policy.authorize(action, _identity(member), room_id=room.id).allowed is True
    # Ownership alone does not grant messaging rights.
    for caller in (owner, outsider):
        with pytest.raises(NotInRoom):
            policy.require(action, _identity(caller), room_id=room.id)


def test_leave_requires_membership(setup):
    _, member, outsider, room = setup
    policy = RoomPolicy()

    policy.require(LEAVE_ROOM, _identity(member), room_id=room.id)
    with pytest.raises(NotMember):
        policy.require(LEAVE_ROOM, _identity(outsider), room_id=room.id)


def test_join_rules(setup):
    owner, member, outsider, room = setup
    policy = RoomPolicy()

    policy.require(JOIN_ROOM, _identity(outsider), room_id=room.id)
    with pytest.raises(AlreadyMember):
        policy.require(JOIN_ROOM, _identity(member), room_id=room.id)
    with pytest.raises(RoomNotFound):
        policy.require(JOIN_ROOM, _identity(owner), room_id=9999)
    with pytest.raises(UserNotFound):
        policy.require(JOIN_ROOM, VerifiedIdentity(user_id=9999, session_id="x"), room_id=room.id)


def test_update_username_only_for_self(setup):
    owner, member, outsider, room = setup
    policy = RoomPolicy()

    policy.require(UPDATE_USERNAME, _identity(member), room_id=room.id, target_user_id=member.id)
    with pytest.raises(Forbidden):
        policy.require(UPDATE_USERNAME, _identity(owner), room_id=room.id, target_user_id=member.id)
    with pytest.raises(NotMember):
        policy.require(UPDATE_USERNAME, _identity(outsider), room_id=room.id, target_user_id=outsider.id)


def test_unknown_action_is_a_programming_error(setup):
    owner, _, _, room = setup
    with pytest.raises(ValueError):
        RoomPolicy().authorize("archive_room", _identity(owner), room_id=room.id)
