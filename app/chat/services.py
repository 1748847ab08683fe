"""
Chat system service layer.

Services:
    RoomService: Room lifecycle (payment-gated idempotent create, fetch, close)
    MessageService: Sequenced message persistence, history paging, delivery acks
    ReadReceiptService: Read receipts, unread counts and the user's room list

Design Principles:
    - Services are stateless (use class methods)
    - Expected failures return ServiceResult.failure() with a ChatErrorCode
    - Corrupted state raises DataIntegrityError, unavailable dependencies
      raise DownstreamError
    - The Room row is the only contended resource. Its status and
      sequence_counter are only changed with conditional UPDATE statements,
      never read-modify-write in Python.
    - Room events and notifications are scheduled after commit through
      ChatNotifier and never affect the outcome of the operation that
      triggered them.

Usage:
    from chat.services import RoomService, MessageService, ReadReceiptService

    result = RoomService.create_room(engagement_id)
    if result.success:
        room = result.data

    result = MessageService.send_message(sender_id, engagement_id, "Hello")
    if not result.success:
        logger.info(f"Send rejected: {result.error_code}")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from django.db import IntegrityError, OperationalError
from django.db.models import Count, F
from django.utils import timezone

from chat import adapters
from chat.authorization import ChatAuthorizationService
from chat.constants import HISTORY_CONFIG, MESSAGE_CONFIG, ChatErrorCode
from chat.exceptions import DataIntegrityError, DownstreamError
from chat.models import Message, MessageStatus, ReadReceipt, Room, RoomStatus
from chat.notifications import ChatNotifier
from core.decorators import translate_errors
from core.services import BaseService, ServiceResult

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

logger = logging.getLogger(__name__)

CONTENT_FILTER = "content-filter"
PAYMENT_LEDGER = "payment-ledger"


def _access_denied() -> ServiceResult:
    return ServiceResult.failure(
        "You do not have access to this chat",
        error_code=ChatErrorCode.ACCESS_DENIED,
    )


def _room_not_found() -> ServiceResult:
    return ServiceResult.failure(
        "Chat not found",
        error_code=ChatErrorCode.NOT_FOUND,
    )


@dataclass
class HistoryPage:
    """One page of a room's messages, ascending by sequence number."""

    messages: list[Message] = field(default_factory=list)
    total: int = 0
    has_more: bool = False
    limit: int = HISTORY_CONFIG.DEFAULT_LIMIT
    offset: int = 0


@dataclass
class RoomSummary:
    """Entry in a user's room list."""

    room: Room
    latest_message: Message | None
    unread_count: int

    @property
    def last_activity_at(self) -> datetime:
        if self.latest_message is not None:
            return self.latest_message.created_at
        return self.room.created_at


class RoomService(BaseService):
    """
    Service for room lifecycle.

    Methods:
        create_room: Payment-gated get-or-create, safe under concurrent callers
        get_room: Gated fetch by engagement
        close_room: Irreversible ACTIVE -> CLOSED transition
    """

    @classmethod
    def find_room(cls, engagement_id: UUID) -> Room | None:
        """
        Return the engagement's room, or None.

        Raises:
            DataIntegrityError: More than one room exists for the engagement
        """
        rooms = list(Room.objects.filter(engagement_id=engagement_id)[:2])
        if len(rooms) > 1:
            cls.get_logger().error(
                f"Engagement {engagement_id} has more than one chat room"
            )
            raise DataIntegrityError(
                "More than one chat exists for this engagement. Please contact support.",
                details={"engagement_id": str(engagement_id)},
            )
        return rooms[0] if rooms else None

    @classmethod
    @translate_errors(OperationalError, into=DownstreamError, source="database")
    def create_room(cls, engagement_id: UUID) -> ServiceResult[Room]:
        """
        Create the room for a paid engagement, or return the existing one.

        The unique index on engagement_id decides races: the loser's insert
        fails and it re-reads the winner's row, so every caller gets the same
        room and exactly one row exists.

        Args:
            engagement_id: Engagement the room belongs to

        Returns:
            ServiceResult with the (new or existing) Room

        Error codes:
            PAYMENT_NOT_VERIFIED: No verified direct or bulk payment covers
                the engagement

        Raises:
            DownstreamError: Payment ledger or database unavailable
            DataIntegrityError: Duplicate rooms found for the engagement
        """
        ledger = adapters.get_payment_ledger()
        if not adapters.call(PAYMENT_LEDGER, ledger.is_payment_verified, engagement_id):
            cls.get_logger().info(
                f"Room creation blocked for engagement {engagement_id}: payment not verified"
            )
            return ServiceResult.failure(
                "Payment for this engagement has not been verified",
                error_code=ChatErrorCode.PAYMENT_NOT_VERIFIED,
            )

        existing = cls.find_room(engagement_id)
        if existing is not None:
            return ServiceResult.success(existing)

        try:
            with cls.atomic():
                room = Room.objects.create(
                    engagement_id=engagement_id,
                    status=RoomStatus.ACTIVE,
                    sequence_counter=0,
                )
        except IntegrityError:
            room = cls.find_room(engagement_id)
            if room is None:
                raise DataIntegrityError(
                    "Chat creation conflicted but no chat was found",
                    details={"engagement_id": str(engagement_id)},
                )
            cls.get_logger().warning(
                f"Concurrent room creation for engagement {engagement_id}, "
                f"returning room {room.id}"
            )
            return ServiceResult.success(room)

        cls.get_logger().info(f"Created room {room.id} for engagement {engagement_id}")
        return ServiceResult.success(room)

    @classmethod
    @translate_errors(OperationalError, into=DownstreamError, source="database")
    def get_room(cls, engagement_id: UUID, user_id: UUID) -> ServiceResult[Room]:
        """
        Fetch the engagement's room on behalf of a participant.

        Error codes:
            ACCESS_DENIED: user_id is not a participant
            NOT_FOUND: No room exists yet
        """
        if not ChatAuthorizationService.validate_access(user_id, engagement_id):
            return _access_denied()

        room = cls.find_room(engagement_id)
        if room is None:
            return _room_not_found()
        return ServiceResult.success(room)

    @classmethod
    @translate_errors(OperationalError, into=DownstreamError, source="database")
    def close_room(
        cls,
        engagement_id: UUID,
        closed_by: UUID | None = None,
    ) -> ServiceResult[Room]:
        """
        Close the engagement's room. Irreversible.

        The other participant is notified after commit. When closed_by is
        None the close is system-initiated (engagement completed or
        cancelled), no access check applies, and both participants are
        notified. Closing a room that is already closed succeeds without
        a second notification.

        Args:
            engagement_id: Engagement whose room to close
            closed_by: Participant closing the room, or None for the system

        Returns:
            ServiceResult with the closed Room

        Error codes:
            ACCESS_DENIED: closed_by is not a participant
            NOT_FOUND: No room exists
        """
        if closed_by is not None and not ChatAuthorizationService.validate_access(
            closed_by, engagement_id
        ):
            return _access_denied()

        room = cls.find_room(engagement_id)
        if room is None:
            return _room_not_found()

        if room.status == RoomStatus.CLOSED:
            cls.get_logger().debug(f"Room {room.id} already closed")
            return ServiceResult.success(room)

        with cls.atomic():
            now = timezone.now()
            closed = Room.objects.filter(pk=room.pk, status=RoomStatus.ACTIVE).update(
                status=RoomStatus.CLOSED,
                closed_at=now,
                closed_by_id=closed_by,
                updated_at=now,
            )
            if closed:
                ChatNotifier.room_closed(engagement_id, closed_by)

        room.refresh_from_db()
        if closed:
            closer = closed_by or "system"
            cls.get_logger().info(f"Room {room.id} closed by {closer}")
        return ServiceResult.success(room)


class MessageService(BaseService):
    """
    Service for message operations.

    Methods:
        send_message: Validate, redact, sequence and store a message
        get_history: Page through a room's messages in sequence order
        acknowledge_delivery: Mark the counterpart's messages delivered
    """

    @classmethod
    @translate_errors(OperationalError, into=DownstreamError, source="database")
    def send_message(
        cls,
        sender_id: UUID,
        engagement_id: UUID,
        content: str,
        attachment_ref: str | None = None,
    ) -> ServiceResult[Message]:
        """
        Send a message to the engagement's room.

        The sequence number is taken by incrementing Room.sequence_counter
        in the same transaction that inserts the message. The UPDATE holds
        the room row lock until commit, so concurrent senders are serialised
        and each gets a distinct, strictly increasing number.

        Args:
            sender_id: Participant sending the message
            engagement_id: Engagement whose room receives it
            content: Message text (contact details are masked before storage)
            attachment_ref: Optional reference to an uploaded file

        Returns:
            ServiceResult with the stored Message

        Error codes:
            NOT_FOUND: No room for the engagement
            INVALID_STATE: The room is closed
            ACCESS_DENIED: sender_id is not a participant
            VALIDATION_ERROR: Empty or oversized content

        Raises:
            DataIntegrityError: Sequence number collision
            DownstreamError: Content filter, directory or database unavailable
        """
        room = RoomService.find_room(engagement_id)
        if room is None:
            return _room_not_found()

        if room.status != RoomStatus.ACTIVE:
            return ServiceResult.failure(
                "This chat is closed",
                error_code=ChatErrorCode.INVALID_STATE,
            )

        if not ChatAuthorizationService.validate_access(sender_id, engagement_id):
            return _access_denied()

        content = content.strip() if isinstance(content, str) else ""
        invalid = cls.validate_required(content=content)
        if invalid is not None:
            return invalid

        if len(content) > MESSAGE_CONFIG.MAX_CONTENT_LENGTH:
            return ServiceResult.failure(
                f"Message cannot exceed {MESSAGE_CONFIG.MAX_CONTENT_LENGTH} characters",
                error_code=ChatErrorCode.VALIDATION_ERROR,
                errors={"content": ["Message is too long."]},
            )

        attachment_ref = (attachment_ref or "").strip()
        if len(attachment_ref) > MESSAGE_CONFIG.MAX_ATTACHMENT_REF_LENGTH:
            return ServiceResult.failure(
                "Attachment reference is too long",
                error_code=ChatErrorCode.VALIDATION_ERROR,
                errors={"attachment_ref": ["Attachment reference is too long."]},
            )

        content_filter = adapters.get_content_filter()
        content = adapters.call(CONTENT_FILTER, content_filter.redact, content)

        # Masks can be longer than what they replace
        if len(content) > MESSAGE_CONFIG.MAX_CONTENT_LENGTH:
            return ServiceResult.failure(
                f"Message cannot exceed {MESSAGE_CONFIG.MAX_CONTENT_LENGTH} characters "
                "once contact details are masked",
                error_code=ChatErrorCode.VALIDATION_ERROR,
                errors={"content": ["Message is too long."]},
            )

        message = cls._append(room, sender_id, content, attachment_ref)
        if message is None:
            return ServiceResult.failure(
                "This chat is closed",
                error_code=ChatErrorCode.INVALID_STATE,
            )

        cls.get_logger().debug(
            f"User {sender_id} sent message {message.id} "
            f"(seq {message.sequence_number}) to room {room.id}"
        )
        return ServiceResult.success(message)

    @classmethod
    def _append(
        cls,
        room: Room,
        sender_id: UUID,
        content: str,
        attachment_ref: str,
    ) -> Message | None:
        """
        Take the next sequence number and insert the message atomically.

        Returns None if the room was closed after it was loaded.
        """
        try:
            with cls.atomic():
                now = timezone.now()
                advanced = Room.objects.filter(
                    pk=room.pk,
                    status=RoomStatus.ACTIVE,
                ).update(
                    sequence_counter=F("sequence_counter") + 1,
                    updated_at=now,
                )
                if not advanced:
                    return None

                sequence_number = Room.objects.values_list(
                    "sequence_counter", flat=True
                ).get(pk=room.pk)

                message = Message.objects.create(
                    room=room,
                    sender_id=sender_id,
                    content=content,
                    attachment_ref=attachment_ref,
                    sequence_number=sequence_number,
                    status=MessageStatus.SENT,
                )
                ChatNotifier.message_sent(message)
        except IntegrityError as e:
            cls.get_logger().error(f"Sequence collision in room {room.id}: {e}")
            raise DataIntegrityError(
                "Message ordering conflict. Please contact support.",
                details={"room_id": str(room.id)},
            ) from e

        room.sequence_counter = sequence_number
        room.updated_at = now
        return message

    @classmethod
    @translate_errors(OperationalError, into=DownstreamError, source="database")
    def get_history(
        cls,
        engagement_id: UUID,
        limit: int | str | None = HISTORY_CONFIG.DEFAULT_LIMIT,
        offset: int | str | None = 0,
    ) -> HistoryPage:
        """
        Page through a room's messages, ascending by sequence number.

        limit is clamped to [1, 100] and offset to >= 0. Values that are not
        integers fall back to the defaults (20 and 0). A missing room yields
        an empty page rather than an error.

        Callers are responsible for checking access first.
        """
        limit = _coerce_int(limit, HISTORY_CONFIG.DEFAULT_LIMIT)
        limit = min(max(limit, HISTORY_CONFIG.MIN_LIMIT), HISTORY_CONFIG.MAX_LIMIT)
        offset = max(_coerce_int(offset, 0), 0)

        room = RoomService.find_room(engagement_id)
        if room is None:
            return HistoryPage(limit=limit, offset=offset)

        queryset = Message.objects.filter(room=room).order_by("sequence_number")
        total = queryset.count()
        messages = list(queryset[offset : offset + limit])

        return HistoryPage(
            messages=messages,
            total=total,
            has_more=offset + limit < total,
            limit=limit,
            offset=offset,
        )

    @classmethod
    @translate_errors(OperationalError, into=DownstreamError, source="database")
    def acknowledge_delivery(
        cls,
        engagement_id: UUID,
        recipient_id: UUID,
    ) -> ServiceResult[int]:
        """
        Mark every SENT message from the other participant as DELIVERED.

        READ messages are left alone; status never moves backwards.

        Returns:
            ServiceResult with the number of messages updated

        Error codes:
            ACCESS_DENIED: recipient_id is not a participant
            NOT_FOUND: No room exists
        """
        if not ChatAuthorizationService.validate_access(recipient_id, engagement_id):
            return _access_denied()

        room = RoomService.find_room(engagement_id)
        if room is None:
            return _room_not_found()

        delivered = (
            Message.objects.filter(room=room, status=MessageStatus.SENT)
            .exclude(sender_id=recipient_id)
            .update(status=MessageStatus.DELIVERED, updated_at=timezone.now())
        )
        if delivered:
            cls.get_logger().debug(
                f"User {recipient_id} acknowledged {delivered} message(s) in room {room.id}"
            )
        return ServiceResult.success(delivered)


class ReadReceiptService(BaseService):
    """
    Service for read state.

    Methods:
        mark_read: Idempotent per-reader receipt upsert
        get_receipts: Receipts for a message, newest first
        get_unread_count: Unread messages in one room for one user
        get_user_rooms: Batched room list with latest message and unread count
    """

    @classmethod
    @translate_errors(OperationalError, into=DownstreamError, source="database")
    def mark_read(
        cls,
        message_id: UUID,
        reader_id: UUID,
    ) -> ServiceResult[ReadReceipt | None]:
        """
        Record that reader_id has read a message.

        Repeated calls keep a single receipt whose read_at is the latest
        call. Marking your own message is a successful no-op.

        Returns:
            ServiceResult with the ReadReceipt, or None for the author no-op

        Error codes:
            NOT_FOUND: Message does not exist
            ACCESS_DENIED: reader_id is not a participant of the engagement
        """
        message = Message.objects.select_related("room").filter(pk=message_id).first()
        if message is None:
            return ServiceResult.failure(
                "Message not found",
                error_code=ChatErrorCode.NOT_FOUND,
            )

        if str(message.sender_id) == str(reader_id):
            return ServiceResult.success(None)

        if not ChatAuthorizationService.validate_access(
            reader_id, message.room.engagement_id
        ):
            return _access_denied()

        with cls.atomic():
            now = timezone.now()
            receipt, created = ReadReceipt.objects.update_or_create(
                message=message,
                reader_id=reader_id,
                defaults={"read_at": now},
            )
            Message.objects.filter(pk=message.pk).exclude(
                status=MessageStatus.READ
            ).update(status=MessageStatus.READ, updated_at=now)
            ChatNotifier.message_read(receipt, message.room.engagement_id)

        if created:
            cls.get_logger().debug(f"User {reader_id} read message {message.id}")
        return ServiceResult.success(receipt)

    @classmethod
    @translate_errors(OperationalError, into=DownstreamError, source="database")
    def get_receipts(
        cls,
        message_id: UUID,
        requester_id: UUID | None = None,
    ) -> ServiceResult[list[ReadReceipt]]:
        """
        List a message's receipts ordered by read_at, newest first.

        When requester_id is given it must be a participant of the
        message's engagement.

        Error codes:
            NOT_FOUND: Message does not exist
            ACCESS_DENIED: requester_id is not a participant
        """
        message = Message.objects.select_related("room").filter(pk=message_id).first()
        if message is None:
            return ServiceResult.failure(
                "Message not found",
                error_code=ChatErrorCode.NOT_FOUND,
            )

        if requester_id is not None and not ChatAuthorizationService.validate_access(
            requester_id, message.room.engagement_id
        ):
            return _access_denied()

        receipts = list(
            ReadReceipt.objects.filter(message=message).order_by("-read_at")
        )
        return ServiceResult.success(receipts)

    @classmethod
    @translate_errors(OperationalError, into=DownstreamError, source="database")
    def get_unread_count(cls, engagement_id: UUID, user_id: UUID) -> int:
        """
        Count messages in the room not sent by user_id and not read by them.

        Returns 0 when the room does not exist.
        """
        room = RoomService.find_room(engagement_id)
        if room is None:
            return 0
        return (
            Message.objects.filter(room=room)
            .exclude(sender_id=user_id)
            .exclude(read_receipts__reader_id=user_id)
            .count()
        )

    @classmethod
    @translate_errors(OperationalError, into=DownstreamError, source="database")
    def get_user_rooms(cls, user_id: UUID) -> list[RoomSummary]:
        """
        List the rooms of every engagement the user takes part in.

        Runs a fixed number of round trips regardless of room count: one
        directory call, then one query each for rooms, latest messages and
        unread counts.

        Returns:
            RoomSummary list, most recent activity first
        """
        engagement_ids = ChatAuthorizationService.get_user_engagement_ids(user_id)
        if not engagement_ids:
            return []

        rooms = list(Room.objects.filter(engagement_id__in=engagement_ids))
        if not rooms:
            return []

        room_ids = [room.id for room in rooms]

        # The newest message is the one whose number equals the room counter
        latest_by_room = {
            message.room_id: message
            for message in Message.objects.filter(
                room_id__in=room_ids,
                sequence_number=F("room__sequence_counter"),
            )
        }

        unread_by_room = dict(
            Message.objects.filter(room_id__in=room_ids)
            .exclude(sender_id=user_id)
            .exclude(read_receipts__reader_id=user_id)
            .order_by()
            .values("room_id")
            .annotate(unread=Count("id"))
            .values_list("room_id", "unread")
        )

        summaries = [
            RoomSummary(
                room=room,
                latest_message=latest_by_room.get(room.id),
                unread_count=unread_by_room.get(room.id, 0),
            )
            for room in rooms
        ]
        summaries.sort(key=lambda summary: summary.last_activity_at, reverse=True)
        return summaries


def _coerce_int(value: int | str | None, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default
