"""
Tests for room presence and the Channels notification bridge.
"""

import uuid
from datetime import timedelta

import pytest
from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.utils import timezone
from freezegun import freeze_time

from chat.constants import ChatErrorCode
from chat.notifications import ChannelsNotificationBridge, PresenceService


class TestPresenceService:
    def test_enter_marks_participant_present(self, engagement, influencer_id):
        result = PresenceService.enter_room(influencer_id, engagement.engagement_id)

        assert result.success is True
        assert result.data["expires_in"] == 60
        assert PresenceService.is_present(influencer_id, engagement.engagement_id)

    def test_presence_is_per_room(self, make_engagement, engagement, influencer_id, brand_owner_id):
        other = make_engagement(influencer_id, brand_owner_id)

        PresenceService.enter_room(influencer_id, engagement.engagement_id)

        assert not PresenceService.is_present(influencer_id, other.engagement_id)
        assert not PresenceService.is_present(brand_owner_id, engagement.engagement_id)

    def test_outsider_cannot_enter(self, engagement, outsider_id):
        result = PresenceService.enter_room(outsider_id, engagement.engagement_id)

        assert result.error_code == ChatErrorCode.ACCESS_DENIED
        assert not PresenceService.is_present(outsider_id, engagement.engagement_id)

    def test_leave_clears_presence_and_is_repeatable(self, engagement, influencer_id):
        PresenceService.enter_room(influencer_id, engagement.engagement_id)

        PresenceService.leave_room(influencer_id, engagement.engagement_id)
        second = PresenceService.leave_room(influencer_id, engagement.engagement_id)

        assert second.success is True
        assert not PresenceService.is_present(influencer_id, engagement.engagement_id)

    def test_presence_expires_without_heartbeat(self, engagement, influencer_id):
        """
        Why it matters: A client that vanishes without leaving must start
        receiving pushes again.
        """
        start = timezone.now()
        with freeze_time(start) as frozen:
            PresenceService.enter_room(influencer_id, engagement.engagement_id)
            frozen.tick(timedelta(seconds=61))

            assert not PresenceService.is_present(influencer_id, engagement.engagement_id)


class TestChannelsNotificationBridge:
    @pytest.fixture
    def receive(self):
        """Subscribe a channel to a user's group and return a reader for it."""
        layer = get_channel_layer()

        def subscribe(user_id):
            channel = async_to_sync(layer.new_channel)()
            async_to_sync(layer.group_add)(f"user_{user_id}", channel)
            return lambda: async_to_sync(layer.receive)(channel)

        return subscribe

    def test_new_message_event_payload(self, receive):
        engagement_id, sender_id, recipient_id = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
        read = receive(recipient_id)

        ChannelsNotificationBridge().notify_new_message(
            engagement_id, sender_id, recipient_id, "x" * 150, sender_name="Acme Brand"
        )

        event = read()
        assert event["type"] == "chat.notification"
        notification = event["notification"]
        assert notification["type"] == "CHAT_MESSAGE"
        assert notification["title"] == "Acme Brand"
        assert notification["body"] == "x" * 100
        assert notification["click_action"] == f"/applications/{engagement_id}/chat"
        assert notification["data"]["sender_id"] == str(sender_id)

    def test_new_message_without_name_or_text_uses_fallbacks(self, receive):
        recipient_id = uuid.uuid4()
        read = receive(recipient_id)

        ChannelsNotificationBridge().notify_new_message(
            uuid.uuid4(), uuid.uuid4(), recipient_id, ""
        )

        notification = read()["notification"]
        assert notification["title"] == "New message"
        assert notification["body"] == "sent a message"

    def test_room_closed_event_payload(self, receive):
        engagement_id, recipient_id = uuid.uuid4(), uuid.uuid4()
        read = receive(recipient_id)

        ChannelsNotificationBridge().notify_room_closed(engagement_id, None, recipient_id)

        event = read()
        assert event["type"] == "chat.room_closed"
        assert event["notification"]["type"] == "CHAT_CLOSED"
        assert event["notification"]["data"]["closed_by"] is None

    def test_is_present_reads_room_presence(self, engagement, influencer_id):
        bridge = ChannelsNotificationBridge()

        assert bridge.is_present(influencer_id, engagement.engagement_id) is False
        PresenceService.enter_room(influencer_id, engagement.engagement_id)
        assert bridge.is_present(influencer_id, engagement.engagement_id) is True
