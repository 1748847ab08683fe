"""
Tests for collaborator loading and guarded calls.
"""

import pytest

from chat import adapters
from chat.content_safety import ContactInfoFilter
from chat.exceptions import DownstreamError
from chat.ports import ContentFilter, EngagementDirectory, NotificationBridge, PaymentLedger
from chat.tests.fakes import FakeEngagementDirectory


class TestCollaboratorLoading:
    def test_instances_follow_settings(self):
        assert isinstance(adapters.get_engagement_directory(), FakeEngagementDirectory)
        assert isinstance(adapters.get_content_filter(), ContactInfoFilter)

    def test_instances_are_reused(self):
        assert adapters.get_payment_ledger() is adapters.get_payment_ledger()

    def test_setting_change_gives_a_fresh_instance(self, settings):
        before = adapters.get_engagement_directory()

        settings.CHAT_ENGAGEMENT_DIRECTORY = "chat.tests.fakes.FakeEngagementDirectory"

        assert adapters.get_engagement_directory() is not before

    def test_fakes_satisfy_the_protocols(self):
        assert isinstance(adapters.get_engagement_directory(), EngagementDirectory)
        assert isinstance(adapters.get_payment_ledger(), PaymentLedger)
        assert isinstance(adapters.get_content_filter(), ContentFilter)
        assert isinstance(adapters.get_notification_bridge(), NotificationBridge)

    def test_default_implementations_satisfy_the_protocols(self):
        from chat.notifications import ChannelsNotificationBridge
        from marketplace.directory import DatabaseEngagementDirectory
        from marketplace.ledger import DatabasePaymentLedger

        assert isinstance(DatabaseEngagementDirectory(), EngagementDirectory)
        assert isinstance(DatabasePaymentLedger(), PaymentLedger)
        assert isinstance(ChannelsNotificationBridge(), NotificationBridge)


class TestGuardedCall:
    def test_returns_collaborator_result(self):
        assert adapters.call("test", lambda x: x * 2, 21) == 42

    def test_collaborator_error_becomes_downstream_error(self):
        def fail():
            raise ConnectionError("refused")

        with pytest.raises(DownstreamError) as exc_info:
            adapters.call("ledger-test", fail)

        assert exc_info.value.error_code == "DOWNSTREAM_ERROR"
        assert exc_info.value.details["source"] == "ledger-test"
        assert isinstance(exc_info.value.__cause__, ConnectionError)

    def test_open_circuit_fails_fast(self):
        """
        After repeated failures the collaborator is not called at all.

        Why it matters: A hung dependency must not hold every request for
        its full timeout.
        """
        calls = []

        def fail():
            calls.append(1)
            raise TimeoutError

        for _ in range(5):
            with pytest.raises(DownstreamError):
                adapters.call("flaky", fail)

        with pytest.raises(DownstreamError) as exc_info:
            adapters.call("flaky", fail)

        assert len(calls) == 5
        assert "retry_in" in exc_info.value.details
