from __future__ import annotations

import logging
from typing import Any

from ..config import MESSAGE_MAX_LENGTH
from ..errors import AuthorizationError, NotFoundError, ValidationError
from ..repo import MessageStore, RoomStore
from .connections import ConnectionManager

logger = logging.getLogger(__name__)


def clean_body(body: Any) -> str:
    text = str(body or "").strip()
    if not text:
        raise ValidationError("Message body required", reason="empty_message")
    if len(text) > MESSAGE_MAX_LENGTH:
        raise ValidationError("Message too long", reason="message_too_long")
    return text


class MessageService:
    def __init__(self, messages: MessageStore, connections: ConnectionManager, rooms: RoomStore) -> None:
        self.messages = messages
        self.connections = connections
        self.rooms = rooms

    def _ensure_room_access(self, room_id: str, user_id: str) -> dict[str, Any]:
        room = self.rooms.get_room(room_id)
        if not room:
            raise NotFoundError("Room not found", reason="room_not_found")
        if not self.rooms.is_member(room_id, user_id):
            raise AuthorizationError("Not a member of this room", reason="not_member")
        return room

    def list_pair_messages(self, connection_id: str, user_id: str) -> list[dict[str, Any]]:
        self.connections.ensure_pair_access(connection_id, user_id)
        return self.messages.list_for_context("pair", connection_id)

    def post_pair_message(self, connection_id: str, user_id: str, body: Any) -> dict[str, Any]:
        text = clean_body(body)
        self.connections.ensure_pair_access(connection_id, user_id)
        message = self.messages.create("pair", connection_id, user_id, text)
        logger.info("[CHAT] pair message id=%s connection=%s sender=%s", message["id"], connection_id, user_id)
        return message

    def get_room_detail(self, room_id: str, user_id: str) -> dict[str, Any]:
        room = self._ensure_room_access(room_id, user_id)
        return {**room, "members": self.rooms.list_members(room_id)}

    def list_room_messages(self, room_id: str, user_id: str) -> list[dict[str, Any]]:
        self._ensure_room_access(room_id, user_id)
        return self.messages.list_for_context("room", room_id)

    def post_room_message(self, room_id: str, user_id: str, body: Any) -> dict[str, Any]:
        text = clean_body(body)
        self._ensure_room_access(room_id, user_id)
        message = self.messages.create("room", room_id, user_id, text)
        logger.info("[CHAT] room message id=%s room=%s sender=%s", message["id"], room_id, user_id)
        return message
