"""
Celery tasks for chat notifications.

Both tasks are enqueued by chat.notifications.ChatNotifier after the
triggering transaction commits. They are best-effort: every failure is
logged and swallowed, and a task never retries in a way that could deliver
the same notification twice.

Usage:
    from chat.tasks import dispatch_message_notification

    dispatch_message_notification.delay(str(message.id))
"""

import logging

from celery import shared_task

from chat import adapters
from chat.authorization import ChatAuthorizationService
from chat.models import Message

logger = logging.getLogger(__name__)

BRIDGE = "notification-bridge"


@shared_task(ignore_result=True)
def dispatch_message_notification(message_id: str) -> bool:
    """
    Notify the other participant about a new message unless they are present.

    Args:
        message_id: ID of the stored message

    Returns:
        True if a notification was handed to the bridge
    """
    try:
        message = Message.objects.select_related("room").filter(pk=message_id).first()
        if message is None:
            logger.warning(f"Message {message_id} not found, skipping notification")
            return False

        engagement_id = message.room.engagement_id
        participants = ChatAuthorizationService.get_participants(engagement_id)
        recipient_id = participants.counterpart_of(message.sender_id) if participants else None
        if recipient_id is None:
            logger.warning(
                f"No recipient for message {message_id} in engagement {engagement_id}"
            )
            return False

        bridge = adapters.get_notification_bridge()
        if adapters.call(BRIDGE, bridge.is_present, recipient_id, engagement_id):
            logger.debug(f"User {recipient_id} is in the room, skipping notification")
            return False

        adapters.call(
            BRIDGE,
            bridge.notify_new_message,
            engagement_id,
            message.sender_id,
            recipient_id,
            message.content,
            sender_name=participants.display_name_of(message.sender_id),
        )
        logger.info(f"Notified user {recipient_id} of message {message_id}")
        return True

    except Exception:
        logger.exception(f"Failed to send notification for message {message_id}")
        return False


@shared_task(ignore_result=True)
def dispatch_room_closed_notification(engagement_id: str, closed_by: str | None) -> int:
    """
    Notify participants that the engagement's room was closed.

    The participant who closed the room is not notified. A system close
    (closed_by=None) notifies both participants. Presence is not checked:
    a participant viewing the room still needs to learn it is read-only.

    Returns:
        Number of notifications handed to the bridge
    """
    notified = 0
    try:
        participants = ChatAuthorizationService.get_participants(engagement_id)
        if participants is None:
            logger.warning(f"Engagement {engagement_id} not found, skipping close notice")
            return 0

        if closed_by:
            recipient = participants.counterpart_of(closed_by)
            recipients = [recipient] if recipient is not None else []
        else:
            recipients = list(participants.participant_ids)

        bridge = adapters.get_notification_bridge()
        for recipient_id in recipients:
            adapters.call(
                BRIDGE,
                bridge.notify_room_closed,
                engagement_id,
                closed_by,
                recipient_id,
            )
            notified += 1

    except Exception:
        logger.exception(f"Failed to send close notification for engagement {engagement_id}")

    logger.info(f"Sent {notified} close notification(s) for engagement {engagement_id}")
    return notified
