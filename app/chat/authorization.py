"""
Engagement-level access checks for chat operations.

Every chat operation that touches a room goes through this gate. A user has
access to an engagement's room iff they are its influencer or the owner of
the campaign it belongs to. Participants are resolved from the engagement
directory on every call; nothing is cached locally.

Denials carry no reason. Unknown engagements and non-participants look the
same to the caller.

Usage:
    if not ChatAuthorizationService.validate_access(user_id, engagement_id):
        return ServiceResult.failure("Access denied", ChatErrorCode.ACCESS_DENIED)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from chat import adapters

if TYPE_CHECKING:
    from uuid import UUID

    from chat.ports import EngagementParticipants

logger = logging.getLogger(__name__)

DIRECTORY = "engagement-directory"


class ChatAuthorizationService:
    """
    Stateless access checks backed by the engagement directory.

    Directory outages raise DownstreamError rather than returning False, so
    an outage is never reported to users as a permission problem.
    """

    @classmethod
    def get_participants(cls, engagement_id: UUID | None) -> EngagementParticipants | None:
        """
        Resolve both parties of an engagement.

        Returns:
            EngagementParticipants, or None for a missing id or unknown engagement

        Raises:
            DownstreamError: Directory unavailable
        """
        if not engagement_id:
            return None
        directory = adapters.get_engagement_directory()
        return adapters.call(DIRECTORY, directory.resolve_participants, engagement_id)

    @classmethod
    def validate_access(cls, user_id: UUID | str | None, engagement_id: UUID | None) -> bool:
        """
        Check whether user_id may use the engagement's room.

        Args:
            user_id: Authenticated identity
            engagement_id: Engagement whose room is being accessed

        Returns:
            True if the user is the influencer or the brand owner
        """
        if not user_id or not engagement_id:
            return False

        participants = cls.get_participants(engagement_id)
        allowed = participants is not None and participants.includes(user_id)
        if not allowed:
            logger.info(f"Chat access denied: user={user_id} engagement={engagement_id}")
        return allowed

    @classmethod
    def get_user_engagement_ids(cls, user_id: UUID | str) -> list[UUID]:
        """All engagements the user takes part in, in one directory call."""
        directory = adapters.get_engagement_directory()
        return list(adapters.call(DIRECTORY, directory.engagements_for_user, user_id))
