"""
Tests for chat models.

Covers database-level guarantees that services rely on:
- One room per engagement
- Unique sequence numbers per room
- One receipt per (message, reader)
- Rooms and messages cannot be deleted out from under their children
"""

import uuid

import pytest
from django.db import IntegrityError, transaction
from django.db.models import ProtectedError
from django.utils import timezone

from chat.models import Message, MessageStatus, ReadReceipt, Room, RoomStatus
from chat.tests.factories import MessageFactory, ReadReceiptFactory, RoomFactory

pytestmark = pytest.mark.django_db


class TestRoom:
    def test_defaults(self):
        room = Room.objects.create(engagement_id=uuid.uuid4())

        assert room.status == RoomStatus.ACTIVE
        assert room.sequence_counter == 0
        assert room.closed_at is None
        assert room.closed_by_id is None
        assert room.is_active is True

    def test_engagement_has_at_most_one_room(self):
        """
        Why it matters: Concurrent creators rely on this index to detect
        that they lost the race.
        """
        room = RoomFactory()

        with pytest.raises(IntegrityError), transaction.atomic():
            Room.objects.create(engagement_id=room.engagement_id)

    def test_closed_room_is_not_active(self):
        assert RoomFactory(closed=True).is_active is False

    def test_room_with_messages_cannot_be_deleted(self):
        message = MessageFactory()

        with pytest.raises(ProtectedError):
            message.room.delete()


class TestMessage:
    def test_factory_advances_room_counter(self):
        room = RoomFactory()

        first = MessageFactory(room=room)
        second = MessageFactory(room=room)

        room.refresh_from_db()
        assert (first.sequence_number, second.sequence_number) == (1, 2)
        assert room.sequence_counter == 2

    def test_sequence_number_is_unique_per_room(self):
        """
        Why it matters: This constraint is the last line of defence against
        two messages sharing a position in the history.
        """
        message = MessageFactory()

        with pytest.raises(IntegrityError), transaction.atomic():
            Message.objects.create(
                room=message.room,
                sender_id=uuid.uuid4(),
                content="duplicate",
                sequence_number=message.sequence_number,
            )

    def test_same_sequence_number_in_different_rooms_is_fine(self):
        MessageFactory(sequence_number=1)
        MessageFactory(sequence_number=1)

        assert Message.objects.filter(sequence_number=1).count() == 2

    def test_default_ordering_is_by_sequence(self):
        room = RoomFactory()
        MessageFactory.create_batch(3, room=room)

        numbers = list(Message.objects.filter(room=room).values_list("sequence_number", flat=True))

        assert numbers == [1, 2, 3]

    def test_defaults(self):
        message = MessageFactory()

        assert message.status == MessageStatus.SENT
        assert message.attachment_ref == ""


class TestReadReceipt:
    def test_one_receipt_per_reader(self):
        receipt = ReadReceiptFactory()

        with pytest.raises(IntegrityError), transaction.atomic():
            ReadReceipt.objects.create(
                message=receipt.message,
                reader_id=receipt.reader_id,
                read_at=timezone.now(),
            )

    def test_many_readers_per_message(self):
        message = MessageFactory()
        ReadReceiptFactory.create_batch(2, message=message)

        assert message.read_receipts.count() == 2
