"""
EngagementDirectory backed by the marketplace tables.

An engagement is a v1_applications row. Its participants are the applying
influencer and the user who created the campaign.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.db.models import Q

from chat.ports import EngagementParticipants
from marketplace.models import Application, BrandProfile, MarketplaceUser

if TYPE_CHECKING:
    from uuid import UUID

logger = logging.getLogger(__name__)


class DatabaseEngagementDirectory:
    """
    Resolves participants with one query per lookup plus one for names.

    Database errors propagate; the caller's circuit breaker turns them into
    DownstreamError.
    """

    def resolve_participants(self, engagement_id: UUID) -> EngagementParticipants | None:
        row = (
            Application.objects.filter(pk=engagement_id)
            .values("influencer_id", "campaign__created_by")
            .first()
        )
        if row is None:
            logger.debug(f"Engagement {engagement_id} not found")
            return None

        influencer_id = row["influencer_id"]
        brand_owner_id = row["campaign__created_by"]
        names = self._display_names(influencer_id, brand_owner_id)

        return EngagementParticipants(
            engagement_id=engagement_id,
            influencer_id=influencer_id,
            brand_owner_id=brand_owner_id,
            influencer_name=names.get(influencer_id, ""),
            brand_owner_name=names.get(brand_owner_id, ""),
        )

    def engagements_for_user(self, user_id: UUID) -> list[UUID]:
        return list(
            Application.objects.filter(
                Q(influencer_id=user_id) | Q(campaign__created_by=user_id)
            ).values_list("id", flat=True)
        )

    def _display_names(self, influencer_id, brand_owner_id) -> dict:
        # Brand owners are shown by brand name when they have a profile
        names = dict(
            MarketplaceUser.objects.filter(
                pk__in=[pid for pid in (influencer_id, brand_owner_id) if pid]
            ).values_list("id", "name")
        )
        if brand_owner_id:
            brand_name = (
                BrandProfile.objects.filter(user_id=brand_owner_id)
                .values_list("brand_name", flat=True)
                .first()
            )
            if brand_name:
                names[brand_owner_id] = brand_name
        return names
