"""
Notification hand-off and room presence.

Components:
    ChatNotifier: Publishes room events and schedules notification tasks
        after the triggering transaction commits
    PresenceService: Tracks which participants are viewing a room
    ChannelsNotificationBridge: Default NotificationBridge, pushes events to
        the recipient's Channels group

Flow for a new message:
    MessageService.send_message
      -> ChatNotifier.message_sent (BaseService.on_commit)
      -> "room.message" to group app_<engagement_id> (open room sockets)
      -> chat.tasks.dispatch_message_notification (Celery)
      -> NotificationBridge.is_present / notify_new_message

Nothing in this module may make a send or close fail. Publish and enqueue
errors are logged and dropped.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.core.cache import cache
from django.utils import timezone

from chat.authorization import ChatAuthorizationService
from chat.constants import (
    NOTIFICATION_CONFIG,
    PRESENCE_CONFIG,
    REALTIME_CONFIG,
    ChatErrorCode,
)
from chat.serializers import MessageSerializer, ReadReceiptSerializer
from core.services import BaseService, ServiceResult

if TYPE_CHECKING:
    from uuid import UUID

    from chat.models import Message, ReadReceipt

logger = logging.getLogger(__name__)


class ChatNotifier(BaseService):
    """
    Fire-and-forget hand-off of chat events after commit.

    Each event does two things once the triggering transaction commits:
    publish to the room's Channels group, so sockets open on the room see
    it at once, and enqueue the notification task that reaches participants
    who are not in the room. Both run from BaseService.on_commit, so a
    rolled back send never notifies and a slow broker never holds the room
    row lock.
    """

    @classmethod
    def message_sent(cls, message: Message) -> None:
        from chat.tasks import dispatch_message_notification

        message_id = str(message.id)
        engagement_id = message.room.engagement_id
        event = {
            "type": REALTIME_CONFIG.EVENT_MESSAGE,
            "message": dict(MessageSerializer(message).data),
        }

        def after_commit():
            cls._broadcast(engagement_id, event)
            cls._enqueue(dispatch_message_notification, message_id)

        cls.on_commit(after_commit)

    @classmethod
    def message_read(cls, receipt: ReadReceipt, engagement_id: UUID) -> None:
        event = {
            "type": REALTIME_CONFIG.EVENT_READ,
            "receipt": dict(ReadReceiptSerializer(receipt).data),
        }
        cls.on_commit(lambda: cls._broadcast(engagement_id, event))

    @classmethod
    def room_closed(cls, engagement_id: UUID, closed_by: UUID | None) -> None:
        from chat.tasks import dispatch_room_closed_notification

        args = (str(engagement_id), str(closed_by) if closed_by else None)
        event = {"type": REALTIME_CONFIG.EVENT_CLOSED, "closed_by": args[1]}

        def after_commit():
            cls._broadcast(engagement_id, event)
            cls._enqueue(dispatch_room_closed_notification, *args)

        cls.on_commit(after_commit)

    @staticmethod
    def _broadcast(engagement_id, event: dict) -> None:
        group = f"{REALTIME_CONFIG.ROOM_GROUP_PREFIX}{engagement_id}"
        try:
            async_to_sync(get_channel_layer().group_send)(group, event)
        except Exception:
            logger.exception(f"Failed to publish {event['type']} to {group}")

    @staticmethod
    def _enqueue(task, *args) -> None:
        try:
            task.delay(*args)
        except Exception:
            logger.exception(f"Failed to enqueue {task.name} for {args}")


class PresenceService(BaseService):
    """
    Cache-based room presence.

    A user is present in a room while a key for (engagement, user) exists.
    Keys expire after PRESENCE_CONFIG.ROOM_PRESENCE_TTL_SECONDS, so clients
    refresh them every HEARTBEAT_INTERVAL_SECONDS while the room is open.
    """

    @staticmethod
    def _room_presence_key(engagement_id, user_id) -> str:
        return f"{PRESENCE_CONFIG.KEY_PREFIX_ROOM_PRESENCE}:{engagement_id}:{user_id}"

    @classmethod
    def enter_room(cls, user_id: UUID, engagement_id: UUID) -> ServiceResult[dict]:
        """
        Mark the user as viewing the room, or refresh the mark.

        Error codes:
            ACCESS_DENIED: user_id is not a participant
        """
        if not ChatAuthorizationService.validate_access(user_id, engagement_id):
            return ServiceResult.failure(
                "You do not have access to this chat",
                error_code=ChatErrorCode.ACCESS_DENIED,
            )

        now = timezone.now().isoformat()
        cache.set(
            cls._room_presence_key(engagement_id, user_id),
            now,
            timeout=PRESENCE_CONFIG.ROOM_PRESENCE_TTL_SECONDS,
        )
        return ServiceResult.success(
            {
                "user_id": str(user_id),
                "engagement_id": str(engagement_id),
                "last_seen": now,
                "expires_in": PRESENCE_CONFIG.ROOM_PRESENCE_TTL_SECONDS,
            }
        )

    @classmethod
    def leave_room(cls, user_id: UUID, engagement_id: UUID) -> ServiceResult[None]:
        """Clear the user's presence in the room. Leaving twice is fine."""
        cache.delete(cls._room_presence_key(engagement_id, user_id))
        return ServiceResult.success(None)

    @classmethod
    def is_present(cls, user_id: UUID, engagement_id: UUID) -> bool:
        return cache.get(cls._room_presence_key(engagement_id, user_id)) is not None


class ChannelsNotificationBridge:
    """
    Default NotificationBridge backed by the Channels layer.

    Each user's websocket/push workers subscribe to the group
    "user_<id>". Events follow the payload the mobile clients expect:
    type, title, body, click_action and data.
    """

    def _send(self, recipient_id, event: dict) -> None:
        channel_layer = get_channel_layer()
        group = f"{NOTIFICATION_CONFIG.USER_GROUP_PREFIX}{recipient_id}"
        async_to_sync(channel_layer.group_send)(group, event)

    def notify_new_message(
        self,
        engagement_id,
        sender_id,
        recipient_id,
        content: str,
        sender_name: str = "",
    ) -> None:
        preview = content[: NOTIFICATION_CONFIG.PREVIEW_LENGTH]
        self._send(
            recipient_id,
            {
                "type": NOTIFICATION_CONFIG.EVENT_NEW_MESSAGE,
                "notification": {
                    "type": "CHAT_MESSAGE",
                    "title": sender_name or "New message",
                    "body": preview or "sent a message",
                    "click_action": NOTIFICATION_CONFIG.CLICK_ACTION_TEMPLATE.format(
                        engagement_id=engagement_id
                    ),
                    "data": {
                        "engagement_id": str(engagement_id),
                        "sender_id": str(sender_id),
                        "recipient_id": str(recipient_id),
                    },
                },
            },
        )

    def notify_room_closed(self, engagement_id, closed_by, recipient_id) -> None:
        self._send(
            recipient_id,
            {
                "type": NOTIFICATION_CONFIG.EVENT_ROOM_CLOSED,
                "notification": {
                    "type": "CHAT_CLOSED",
                    "title": "Chat closed",
                    "body": "This conversation has been closed",
                    "click_action": NOTIFICATION_CONFIG.CLICK_ACTION_TEMPLATE.format(
                        engagement_id=engagement_id
                    ),
                    "data": {
                        "engagement_id": str(engagement_id),
                        "closed_by": str(closed_by) if closed_by else None,
                        "recipient_id": str(recipient_id),
                    },
                },
            },
        )

    def is_present(self, user_id, engagement_id) -> bool:
        return PresenceService.is_present(user_id, engagement_id)
