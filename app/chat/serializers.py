"""
Serializers for the chat API.

Serializer Hierarchy:
    RoomSerializer: Room state
    RoomSummarySerializer: Entry of the user's room list
    MessageSerializer: Stored message
    MessageCreateSerializer: Send a message
    HistoryPageSerializer: Page of history with total/has_more
    ReadReceiptSerializer: A reader's receipt
    PresenceSerializer: Result of entering a room

Design Decisions:
    - Read and write serializers are separate
    - Write serializers only check shape. Content rules (blank after
      trimming, maximum length) are enforced by MessageService so every
      entry point applies them.
"""

from __future__ import annotations

from rest_framework import serializers

from chat.constants import MESSAGE_CONFIG
from chat.models import Message, ReadReceipt, Room


class RoomSerializer(serializers.ModelSerializer):
    class Meta:
        model = Room
        fields = [
            "id",
            "engagement_id",
            "status",
            "sequence_counter",
            "closed_at",
            "closed_by_id",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class MessageSerializer(serializers.ModelSerializer):
    """Message as stored, content already masked."""

    room_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = Message
        fields = [
            "id",
            "room_id",
            "sender_id",
            "content",
            "attachment_ref",
            "sequence_number",
            "status",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class MessageCreateSerializer(serializers.Serializer):
    """
    Serializer for sending messages.

    Blank content is allowed through here so the service can report it
    with the VALIDATION_ERROR code like every other content rule.
    """

    content = serializers.CharField(
        allow_blank=True,
        trim_whitespace=False,
        help_text=f"Message text (max {MESSAGE_CONFIG.MAX_CONTENT_LENGTH} characters)",
    )
    attachment_ref = serializers.CharField(
        required=False,
        allow_blank=True,
        allow_null=True,
        help_text="Reference to an already uploaded file",
    )


class HistoryPageSerializer(serializers.Serializer):
    messages = MessageSerializer(many=True, read_only=True)
    total = serializers.IntegerField(read_only=True)
    has_more = serializers.BooleanField(read_only=True)
    limit = serializers.IntegerField(read_only=True)
    offset = serializers.IntegerField(read_only=True)


class RoomSummarySerializer(serializers.Serializer):
    room = RoomSerializer(read_only=True)
    latest_message = MessageSerializer(read_only=True, allow_null=True)
    unread_count = serializers.IntegerField(read_only=True)


class ReadReceiptSerializer(serializers.ModelSerializer):
    message_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = ReadReceipt
        fields = ["id", "message_id", "reader_id", "read_at"]
        read_only_fields = fields


class DeliveryAckSerializer(serializers.Serializer):
    delivered = serializers.IntegerField(read_only=True)


class PresenceSerializer(serializers.Serializer):
    user_id = serializers.UUIDField(read_only=True)
    engagement_id = serializers.UUIDField(read_only=True)
    last_seen = serializers.DateTimeField(read_only=True)
    expires_in = serializers.IntegerField(read_only=True)
