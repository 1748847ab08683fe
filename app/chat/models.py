"""
Chat system models.

One room per paid engagement between a brand owner and an influencer.

Models:
    Room: The conversation for an engagement, owns the sequence counter
    Message: A single message with its per-room sequence number
    ReadReceipt: A reader's acknowledgement of a message

Design Decisions:
    - Participants are not stored. They are resolved from the engagement on
      every access check, so ownership changes upstream take effect at once.
    - Room.sequence_counter always equals the newest message's
      sequence_number. It is only ever advanced with an UPDATE ... F() + 1
      inside the transaction that inserts the message.
    - Rooms and messages are never deleted. Message.room uses PROTECT.
    - Identities (sender, reader, closer) are opaque UUIDs from the identity
      provider, not foreign keys to a local user table.
"""

from __future__ import annotations

from django.db import models

from core.models import UUIDModel


class RoomStatus(models.TextChoices):
    """
    Lifecycle of a room.

    ACTIVE: Messages can be sent
    CLOSED: Read-only. A closed room is never reopened.
    """

    ACTIVE = "active", "Active"
    CLOSED = "closed", "Closed"


class MessageStatus(models.TextChoices):
    """
    Delivery state of a message. Only ever moves forward.

    SENT: Persisted
    DELIVERED: The recipient's client acknowledged receipt
    READ: The recipient marked it read
    """

    SENT = "sent", "Sent"
    DELIVERED = "delivered", "Delivered"
    READ = "read", "Read"


class Room(UUIDModel):
    """
    Conversation attached to a single engagement.

    Fields:
        engagement_id: The marketplace application this room belongs to
        status: ACTIVE or CLOSED
        sequence_counter: Sequence number of the newest message (0 when empty)
        closed_at: When the room was closed
        closed_by_id: Who closed it (null for system-initiated closes)
    """

    engagement_id = models.UUIDField(
        unique=True,
        help_text="Engagement (application) this room belongs to",
    )

    status = models.CharField(
        max_length=10,
        choices=RoomStatus.choices,
        default=RoomStatus.ACTIVE,
        db_index=True,
        help_text="Whether messages can still be sent",
    )

    sequence_counter = models.PositiveBigIntegerField(
        default=0,
        help_text="Sequence number of the most recent message",
    )

    closed_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the room was closed",
    )

    closed_by_id = models.UUIDField(
        null=True,
        blank=True,
        help_text="User who closed the room (null when closed by the system)",
    )

    class Meta:
        db_table = "chat_room"
        ordering = ["-updated_at"]

    def __str__(self) -> str:
        return f"Room(engagement={self.engagement_id}, {self.status})"

    @property
    def is_active(self) -> bool:
        return self.status == RoomStatus.ACTIVE


class Message(UUIDModel):
    """
    A message in a room.

    sequence_number is assigned under the room row lock and is unique per
    room. Ordering by it is the canonical conversation order; created_at is
    informational only.
    """

    room = models.ForeignKey(
        Room,
        on_delete=models.PROTECT,
        related_name="messages",
        help_text="Room this message belongs to",
    )

    sender_id = models.UUIDField(
        db_index=True,
        help_text="User who sent this message",
    )

    content = models.TextField(
        help_text="Message text after contact details were masked",
    )

    attachment_ref = models.CharField(
        max_length=500,
        blank=True,
        default="",
        help_text="Opaque reference to an uploaded file",
    )

    sequence_number = models.PositiveBigIntegerField(
        help_text="Position of this message in the room, starting at 1",
    )

    status = models.CharField(
        max_length=10,
        choices=MessageStatus.choices,
        default=MessageStatus.SENT,
        help_text="Delivery state",
    )

    class Meta:
        db_table = "chat_message"
        ordering = ["room_id", "sequence_number"]
        constraints = [
            models.UniqueConstraint(
                fields=["room", "sequence_number"],
                name="chat_message_room_sequence_uniq",
            ),
        ]
        indexes = [
            # Unread counts filter by room and sender
            models.Index(
                fields=["room", "sender_id"],
                name="chat_msg_room_sender_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"Message(room={self.room_id}, seq={self.sequence_number})"


class ReadReceipt(UUIDModel):
    """
    Record that a reader has read a message.

    At most one receipt per (message, reader). read_at is refreshed when the
    reader marks the message read again. Authors never get a receipt for
    their own messages.
    """

    message = models.ForeignKey(
        Message,
        on_delete=models.PROTECT,
        related_name="read_receipts",
        help_text="Message that was read",
    )

    reader_id = models.UUIDField(
        db_index=True,
        help_text="User who read the message",
    )

    read_at = models.DateTimeField(
        help_text="When the reader last marked the message read",
    )

    class Meta:
        db_table = "chat_read_receipt"
        ordering = ["-read_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["message", "reader_id"],
                name="chat_receipt_message_reader_uniq",
            ),
        ]

    def __str__(self) -> str:
        return f"ReadReceipt(message={self.message_id}, reader={self.reader_id})"
