"""
WebSocket consumers for the engagement chat.

Consumers:
    ChatRoomConsumer: Two-way stream for one engagement's room
    NotificationConsumer: Subscribes a connection to its user's group and
        forwards the events published by ChannelsNotificationBridge

Authentication:
    JWTAuthMiddleware puts the token's user id in scope["user_id"].

Channel Groups:
    - "app_{engagement_id}": every socket open on the room. ChatNotifier
      publishes stored messages, read receipts and closes here after commit,
      whichever entry point (HTTP or WebSocket) caused them.
    - "user_{user_id}": out-of-room notifications for one user.

Room Message Types (from client):
    - message: {"type": "message", "content": "Hi", "attachment_ref": null}
    - typing: {"type": "typing", "is_typing": true}
    - read: {"type": "read", "message_id": "<uuid>"}
    - heartbeat: {"type": "heartbeat"} (refreshes room presence)

Room Message Types (to client):
    - message, message_read, typing, user_joined, user_left, chat_closed,
      heartbeat_ack, error

Notification Message Types (to client):
    - chat_message: A new message in one of the user's rooms
    - chat_closed: One of the user's rooms was closed
"""

from __future__ import annotations

import logging
from uuid import UUID

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer

from chat.authorization import ChatAuthorizationService
from chat.constants import (
    NOTIFICATION_CONFIG,
    PRESENCE_CONFIG,
    REALTIME_CONFIG,
    ChatErrorCode,
)
from chat.notifications import PresenceService
from chat.services import MessageService, ReadReceiptService, RoomService
from core.exceptions import BaseApplicationError

logger = logging.getLogger(__name__)


def _accepted_subprotocol(scope) -> str | None:
    # Browsers drop the connection unless the requested subprotocol is echoed
    return "jwt" if "jwt" in scope.get("subprotocols", []) else None


class ChatRoomConsumer(AsyncJsonWebsocketConsumer):
    """
    Real-time room for the two participants of an engagement.

    Handles:
        - Access check on join (close codes 4001, 4003, 4004, 4503)
        - Room presence: entered on join, refreshed by heartbeats, left on
          disconnect, so notifications are only pushed to absent participants
        - Sending and marking read through the services
        - Typing indicators, which are not stored

    Attributes:
        engagement_id: Engagement whose room is open
        user_id: Authenticated participant
        room_group_name: Channel layer group shared by the room's sockets
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.engagement_id: UUID | None = None
        self.user_id: str | None = None
        self.room_group_name: str | None = None

    async def connect(self):
        self.engagement_id = self.scope["url_route"]["kwargs"]["engagement_id"]
        self.user_id = self.scope.get("user_id")

        if not self.user_id:
            logger.warning(
                f"Rejected unauthenticated connection to engagement {self.engagement_id}"
            )
            await self.close(code=REALTIME_CONFIG.CLOSE_UNAUTHENTICATED)
            return

        try:
            close_code = await self._join_room()
        except BaseApplicationError as e:
            logger.error(f"Could not open room for engagement {self.engagement_id}: {e}")
            close_code = REALTIME_CONFIG.CLOSE_UNAVAILABLE

        if close_code is not None:
            await self.close(code=close_code)
            return

        self.room_group_name = f"{REALTIME_CONFIG.ROOM_GROUP_PREFIX}{self.engagement_id}"
        await self.channel_layer.group_add(self.room_group_name, self.channel_name)
        await self.accept(subprotocol=_accepted_subprotocol(self.scope))
        await self.channel_layer.group_send(
            self.room_group_name,
            {"type": REALTIME_CONFIG.EVENT_JOINED, "user_id": self.user_id},
        )
        logger.info(f"User {self.user_id} joined room of engagement {self.engagement_id}")

    async def disconnect(self, close_code):
        if not self.room_group_name:
            return

        await self.channel_layer.group_discard(self.room_group_name, self.channel_name)
        await database_sync_to_async(PresenceService.leave_room)(
            self.user_id, self.engagement_id
        )
        await self.channel_layer.group_send(
            self.room_group_name,
            {"type": REALTIME_CONFIG.EVENT_LEFT, "user_id": self.user_id},
        )
        logger.info(f"User {self.user_id} left room of engagement {self.engagement_id}")

    async def receive_json(self, content, **kwargs):
        message_type = content.get("type") if isinstance(content, dict) else None

        if message_type == "message":
            await self._handle_message(content)
        elif message_type == "typing":
            await self._handle_typing(content)
        elif message_type == "read":
            await self._handle_read(content)
        elif message_type == "heartbeat":
            await self._handle_heartbeat()
        else:
            await self._send_error(
                f"Unknown message type: {message_type}",
                ChatErrorCode.VALIDATION_ERROR,
            )

    async def _handle_message(self, content):
        """
        Store a message. Everyone in the room, sender included, receives it
        from the "room.message" event published after commit.
        """
        attachment_ref = content.get("attachment_ref")
        result = await self._run(
            MessageService.send_message,
            self.user_id,
            self.engagement_id,
            content.get("content"),
            attachment_ref if isinstance(attachment_ref, str) else None,
        )
        if result is not None and not result.success:
            await self.send_json({"type": "error", **result.to_response()})

    async def _handle_typing(self, content):
        await self.channel_layer.group_send(
            self.room_group_name,
            {
                "type": REALTIME_CONFIG.EVENT_TYPING,
                "user_id": self.user_id,
                "is_typing": bool(content.get("is_typing", False)),
            },
        )

    async def _handle_read(self, content):
        try:
            message_id = UUID(str(content.get("message_id")))
        except ValueError:
            await self._send_error("message_id must be a UUID", ChatErrorCode.VALIDATION_ERROR)
            return

        result = await self._run(ReadReceiptService.mark_read, message_id, self.user_id)
        if result is not None and not result.success:
            await self.send_json({"type": "error", **result.to_response()})

    async def _handle_heartbeat(self):
        result = await self._run(PresenceService.enter_room, self.user_id, self.engagement_id)
        if result is None:
            return
        if not result.success:
            await self.send_json({"type": "error", **result.to_response()})
            return
        await self.send_json(
            {
                "type": "heartbeat_ack",
                "expires_in": PRESENCE_CONFIG.ROOM_PRESENCE_TTL_SECONDS,
            }
        )

    # Channel layer events

    async def room_message(self, event):
        await self.send_json({"type": "message", "message": event["message"]})

    async def room_read(self, event):
        await self.send_json({"type": "message_read", "receipt": event["receipt"]})

    async def room_typing(self, event):
        if event["user_id"] == self.user_id:
            return
        await self.send_json(
            {
                "type": "typing",
                "user_id": event["user_id"],
                "is_typing": event["is_typing"],
            }
        )

    async def room_joined(self, event):
        if event["user_id"] != self.user_id:
            await self.send_json({"type": "user_joined", "user_id": event["user_id"]})

    async def room_left(self, event):
        if event["user_id"] != self.user_id:
            await self.send_json({"type": "user_left", "user_id": event["user_id"]})

    async def room_closed(self, event):
        await self.send_json({"type": "chat_closed", "closed_by": event["closed_by"]})

    # Helpers

    async def _run(self, func, *args):
        """Run a service call off the event loop; raised errors become error frames."""
        try:
            return await database_sync_to_async(func)(*args)
        except BaseApplicationError as e:
            logger.error(f"{func.__qualname__} failed for user {self.user_id}: {e}")
            await self.send_json({"type": "error", **e.to_dict()})
            return None

    async def _send_error(self, message: str, error_code: str):
        await self.send_json({"type": "error", "error": message, "error_code": error_code})

    @database_sync_to_async
    def _join_room(self) -> int | None:
        """Return a close code, or None once the user is recorded as present."""
        if not ChatAuthorizationService.validate_access(self.user_id, self.engagement_id):
            return REALTIME_CONFIG.CLOSE_FORBIDDEN
        if RoomService.find_room(self.engagement_id) is None:
            return REALTIME_CONFIG.CLOSE_NOT_FOUND
        PresenceService.enter_room(self.user_id, self.engagement_id)
        return None


class NotificationConsumer(AsyncJsonWebsocketConsumer):
    """Per-user notification stream. Clients only receive, never send."""

    group_name: str | None = None

    async def connect(self):
        user_id = self.scope.get("user_id")
        if not user_id:
            logger.warning("Rejected unauthenticated notification connection")
            await self.close(code=REALTIME_CONFIG.CLOSE_UNAUTHENTICATED)
            return

        self.group_name = f"{NOTIFICATION_CONFIG.USER_GROUP_PREFIX}{user_id}"
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept(subprotocol=_accepted_subprotocol(self.scope))
        logger.debug(f"User {user_id} subscribed to notifications")

    async def disconnect(self, close_code):
        if self.group_name:
            await self.channel_layer.group_discard(self.group_name, self.channel_name)

    async def receive_json(self, content, **kwargs):
        await self.send_json(
            {"type": "error", "message": "This stream does not accept messages"}
        )

    async def chat_notification(self, event):
        await self.send_json({"type": "chat_message", **event["notification"]})

    async def chat_room_closed(self, event):
        await self.send_json({"type": "chat_closed", **event["notification"]})
