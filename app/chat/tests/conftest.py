"""
Test configuration and fixtures for chat tests.

This module provides:
- In-memory collaborators installed for every chat test (see fakes.py)
- Participant ids for an influencer, a brand owner and an outsider
- A paid engagement and its room
- Authenticated API clients carrying a JWT for each participant

Usage:
    def test_example(room, influencer_client, engagement):
        url = f"/api/v1/chat/{engagement.engagement_id}/messages/"
        response = influencer_client.post(url, {"content": "hi"}, format="json")
        assert response.status_code == 201
"""

import uuid

import pytest
from django.core.cache import cache
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from chat import adapters
from chat.ports import EngagementParticipants
from chat.tests.factories import RoomFactory

FAKES = "chat.tests.fakes"


# =============================================================================
# Collaborators
# =============================================================================


@pytest.fixture(autouse=True)
def fake_collaborators(settings):
    """
    Route every collaborator lookup to an in-memory fake.

    Overriding the settings resets the adapter cache, so each test gets
    fresh instances. The real content filter stays in place.
    """
    settings.CHAT_ENGAGEMENT_DIRECTORY = f"{FAKES}.FakeEngagementDirectory"
    settings.CHAT_PAYMENT_LEDGER = f"{FAKES}.FakePaymentLedger"
    settings.CHAT_NOTIFICATION_BRIDGE = f"{FAKES}.RecordingNotificationBridge"
    settings.CHAT_CONTENT_FILTER = "chat.content_safety.ContactInfoFilter"
    # Circuit breaker state and presence live in the cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def directory():
    """The FakeEngagementDirectory the services will talk to."""
    return adapters.get_engagement_directory()


@pytest.fixture
def ledger():
    """The FakePaymentLedger the services will talk to."""
    return adapters.get_payment_ledger()


@pytest.fixture
def bridge():
    """The RecordingNotificationBridge the tasks will talk to."""
    return adapters.get_notification_bridge()


# =============================================================================
# Participants and Engagements
# =============================================================================


@pytest.fixture
def influencer_id():
    return uuid.uuid4()


@pytest.fixture
def brand_owner_id():
    return uuid.uuid4()


@pytest.fixture
def outsider_id():
    """A user who takes part in no test engagement."""
    return uuid.uuid4()


@pytest.fixture
def engagement(directory, ledger, influencer_id, brand_owner_id):
    """A paid engagement between the influencer and the brand owner."""
    participants = directory.add(
        EngagementParticipants(
            engagement_id=uuid.uuid4(),
            influencer_id=influencer_id,
            brand_owner_id=brand_owner_id,
            influencer_name="Ada Creator",
            brand_owner_name="Acme Brand",
        )
    )
    ledger.mark_paid(participants.engagement_id)
    return participants


@pytest.fixture
def make_engagement(directory, ledger):
    """Factory for additional engagements: make_engagement(influencer, brand, paid=True)."""

    def _make(influencer, brand_owner, paid=True):
        participants = directory.add(
            EngagementParticipants(
                engagement_id=uuid.uuid4(),
                influencer_id=influencer,
                brand_owner_id=brand_owner,
            )
        )
        if paid:
            ledger.mark_paid(participants.engagement_id)
        return participants

    return _make


@pytest.fixture
def room(db, engagement):
    """An active room for the engagement."""
    return RoomFactory(engagement_id=engagement.engagement_id)


# =============================================================================
# API Clients
# =============================================================================


def client_for(user_id) -> APIClient:
    """APIClient authenticated with an access token for user_id."""
    token = AccessToken()
    token["user_id"] = str(user_id)
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
    return client


@pytest.fixture
def influencer_client(influencer_id):
    return client_for(influencer_id)


@pytest.fixture
def brand_client(brand_owner_id):
    return client_for(brand_owner_id)


@pytest.fixture
def outsider_client(outsider_id):
    return client_for(outsider_id)


@pytest.fixture
def api_client():
    """Unauthenticated API client."""
    return APIClient()
