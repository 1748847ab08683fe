"""
Tests for DatabaseEngagementDirectory against the marketplace tables.
"""

import uuid

import pytest

from marketplace.directory import DatabaseEngagementDirectory
from marketplace.tests.factories import (
    ApplicationFactory,
    BrandProfileFactory,
    CampaignFactory,
    MarketplaceUserFactory,
)

pytestmark = pytest.mark.django_db


@pytest.fixture
def directory():
    return DatabaseEngagementDirectory()


class TestResolveParticipants:
    def test_influencer_and_campaign_owner(self, directory):
        application = ApplicationFactory()

        participants = directory.resolve_participants(application.id)

        assert participants.engagement_id == application.id
        assert participants.influencer_id == application.influencer_id
        assert participants.brand_owner_id == application.campaign.created_by

    def test_unknown_engagement(self, directory):
        assert directory.resolve_participants(uuid.uuid4()) is None

    def test_display_names_prefer_brand_name(self, directory):
        """
        Why it matters: Push titles show who wrote; brands are known by
        their brand, not the account holder's name.
        """
        influencer = MarketplaceUserFactory(name="Ada Creator")
        brand = BrandProfileFactory(user__name="Bob Owner", brand_name="Acme")
        application = ApplicationFactory(
            influencer_id=influencer.id,
            campaign=CampaignFactory(created_by=brand.user_id),
        )

        participants = directory.resolve_participants(application.id)

        assert participants.influencer_name == "Ada Creator"
        assert participants.brand_owner_name == "Acme"

    def test_missing_profiles_give_empty_names(self, directory):
        application = ApplicationFactory()

        participants = directory.resolve_participants(application.id)

        assert participants.influencer_name == ""
        assert participants.brand_owner_name == ""


class TestEngagementsForUser:
    def test_includes_applications_and_owned_campaigns(self, directory):
        user_id = uuid.uuid4()
        applied = ApplicationFactory(influencer_id=user_id)
        owned = ApplicationFactory(campaign=CampaignFactory(created_by=user_id))
        ApplicationFactory()

        assert set(directory.engagements_for_user(user_id)) == {applied.id, owned.id}

    def test_user_without_engagements(self, directory):
        assert directory.engagements_for_user(uuid.uuid4()) == []
