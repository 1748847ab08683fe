"""
Interfaces for the collaborators the chat depends on.

The chat never reads profiles, campaigns or payments directly. It asks these
collaborators, whose implementations are configured in settings:

    CHAT_ENGAGEMENT_DIRECTORY  -> EngagementDirectory
    CHAT_PAYMENT_LEDGER        -> PaymentLedger
    CHAT_CONTENT_FILTER        -> ContentFilter
    CHAT_NOTIFICATION_BRIDGE   -> NotificationBridge

Implementations only need to match the method signatures (duck typing);
@runtime_checkable allows isinstance() checks in tests.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from uuid import UUID


@dataclass(frozen=True)
class EngagementParticipants:
    """
    The two parties of an engagement.

    Attributes:
        engagement_id: The engagement (application) id
        influencer_id: Identity of the influencer who applied
        brand_owner_id: Identity of the campaign owner
        influencer_name: Display name, used as notification title
        brand_owner_name: Display name, used as notification title
    """

    engagement_id: UUID
    influencer_id: UUID | None
    brand_owner_id: UUID | None
    influencer_name: str = ""
    brand_owner_name: str = ""

    @property
    def participant_ids(self) -> tuple[UUID, ...]:
        return tuple(
            pid for pid in (self.influencer_id, self.brand_owner_id) if pid is not None
        )

    def includes(self, user_id: UUID | str | None) -> bool:
        if user_id is None:
            return False
        return str(user_id) in {str(pid) for pid in self.participant_ids}

    def counterpart_of(self, user_id: UUID | str) -> UUID | None:
        """The other participant, or None if user_id is not a participant."""
        if not self.includes(user_id):
            return None
        if str(user_id) == str(self.influencer_id):
            return self.brand_owner_id
        return self.influencer_id

    def display_name_of(self, user_id: UUID | str | None) -> str:
        if user_id is not None and str(user_id) == str(self.influencer_id):
            return self.influencer_name
        if user_id is not None and str(user_id) == str(self.brand_owner_id):
            return self.brand_owner_name
        return ""


@runtime_checkable
class EngagementDirectory(Protocol):
    """Source of truth for who takes part in an engagement."""

    def resolve_participants(self, engagement_id: UUID) -> EngagementParticipants | None:
        """
        Look up both parties of an engagement.

        Returns:
            EngagementParticipants, or None if the engagement does not exist
        """
        ...

    def engagements_for_user(self, user_id: UUID) -> list[UUID]:
        """All engagement ids where the user is influencer or brand owner."""
        ...


@runtime_checkable
class PaymentLedger(Protocol):
    """Answers whether an engagement has been paid for."""

    def is_payment_verified(self, engagement_id: UUID) -> bool:
        ...


@runtime_checkable
class ContentFilter(Protocol):
    """Masks contact details in free text."""

    def redact(self, text: str) -> str:
        ...


@runtime_checkable
class NotificationBridge(Protocol):
    """
    Out-of-band delivery to a participant who is not looking at the room.

    Calls are made from Celery tasks after the triggering transaction has
    committed. Implementations may raise; callers log and move on.
    """

    def notify_new_message(
        self,
        engagement_id: UUID,
        sender_id: UUID,
        recipient_id: UUID,
        content: str,
        sender_name: str = "",
    ) -> None:
        ...

    def notify_room_closed(
        self,
        engagement_id: UUID,
        closed_by: UUID | None,
        recipient_id: UUID,
    ) -> None:
        ...

    def is_present(self, user_id: UUID, engagement_id: UUID) -> bool:
        """Whether the user is currently viewing the room."""
        ...
