from roomchat.domains.rooms.services.membership_ledger import MembershipLedger
from roomchat.domains.rooms.services.message_service import list_messages, post_message
from roomchat.domains.rooms.services.room_service import (
    check_user,
    count_members,
    create_room,
    delete_room,
    get_room,
    get_room_by_name,
    join_room,
    leave_room,
    list_rooms,
    search_rooms_by_name,
    update_room,
    update_username,
)

__all__ = [
    "MembershipLedger",
    "create_room",
    "list_rooms",
    "get_room",
    "get_room_by_name",
    "search_rooms_by_name",
    "update_room",
    "delete_room",
    "join_room",
    "leave_room",
    "update_username",
    "count_members",
    "check_user",
    "post_message",
    "list_messages",
]
