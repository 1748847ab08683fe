"""
Constants and configuration for the engagement chat.

Import example:
    from chat.constants import MESSAGE_CONFIG, HISTORY_CONFIG, ChatErrorCode
    from chat.constants import REALTIME_CONFIG
"""

from typing import Final


# =============================================================================
# Error Codes
# =============================================================================


class ChatErrorCode:
    """Machine-readable error codes returned in ServiceResult.error_code."""

    ACCESS_DENIED: Final[str] = "ACCESS_DENIED"
    NOT_FOUND: Final[str] = "NOT_FOUND"
    INVALID_STATE: Final[str] = "INVALID_STATE"
    PAYMENT_NOT_VERIFIED: Final[str] = "PAYMENT_NOT_VERIFIED"
    VALIDATION_ERROR: Final[str] = "VALIDATION_ERROR"
    DATA_INTEGRITY_ERROR: Final[str] = "DATA_INTEGRITY_ERROR"
    DOWNSTREAM_ERROR: Final[str] = "DOWNSTREAM_ERROR"


# =============================================================================
# Message Configuration
# =============================================================================


class MESSAGE_CONFIG:
    """Configuration for message operations."""

    MAX_CONTENT_LENGTH: Final[int] = 10000  # Characters, checked before and after redaction
    MAX_ATTACHMENT_REF_LENGTH: Final[int] = 500


class HISTORY_CONFIG:
    """Paging for conversation history."""

    DEFAULT_LIMIT: Final[int] = 20
    MAX_LIMIT: Final[int] = 100
    MIN_LIMIT: Final[int] = 1


# =============================================================================
# Content Safety
# =============================================================================


class CONTENT_SAFETY_CONFIG:
    """Masking applied to contact details in message content."""

    MASK: Final[str] = "********"


# =============================================================================
# Notification Configuration
# =============================================================================


class NOTIFICATION_CONFIG:
    """Configuration for out-of-band new message/room closed notifications."""

    PREVIEW_LENGTH: Final[int] = 100  # Characters of content in the push body
    USER_GROUP_PREFIX: Final[str] = "user_"  # Channels group per recipient
    EVENT_NEW_MESSAGE: Final[str] = "chat.notification"
    EVENT_ROOM_CLOSED: Final[str] = "chat.room_closed"
    CLICK_ACTION_TEMPLATE: Final[str] = "/applications/{engagement_id}/chat"


# =============================================================================
# Presence Configuration
# =============================================================================


class PRESENCE_CONFIG:
    """Configuration for room presence tracking."""

    # How long a room entry lives without a refresh from the client
    ROOM_PRESENCE_TTL_SECONDS: Final[int] = 60

    KEY_PREFIX_ROOM_PRESENCE: Final[str] = "presence:room"

    # How often clients should refresh their presence
    HEARTBEAT_INTERVAL_SECONDS: Final[int] = 30


# =============================================================================
# Collaborator Configuration
# =============================================================================


class COLLABORATOR_CONFIG:
    """Circuit breaker settings for out-of-process collaborators."""

    FAILURE_THRESHOLD: Final[int] = 5
    RECOVERY_TIMEOUT_SECONDS: Final[int] = 30


# =============================================================================
# Realtime Room Configuration
# =============================================================================


class REALTIME_CONFIG:
    """Channel groups, events and close codes for the room WebSocket."""

    ROOM_GROUP_PREFIX: Final[str] = "app_"  # Channels group per engagement room

    EVENT_MESSAGE: Final[str] = "room.message"
    EVENT_READ: Final[str] = "room.read"
    EVENT_TYPING: Final[str] = "room.typing"
    EVENT_CLOSED: Final[str] = "room.closed"
    EVENT_JOINED: Final[str] = "room.joined"
    EVENT_LEFT: Final[str] = "room.left"

    CLOSE_UNAUTHENTICATED: Final[int] = 4001
    CLOSE_FORBIDDEN: Final[int] = 4003
    CLOSE_NOT_FOUND: Final[int] = 4004
    CLOSE_UNAVAILABLE: Final[int] = 4503
