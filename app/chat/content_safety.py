"""
Contact information masking for chat messages.

Participants are not allowed to move the conversation off-platform, so
phone numbers, e-mail addresses, social handles and messenger/social links
are replaced with a fixed mask before a message is stored.

Patterns are applied most specific first, so that e.g. the "@example" part
of an e-mail address is not counted as a handle:

    1. messenger and social links (WhatsApp, Telegram, Instagram, Facebook,
       Twitter/X)
    2. e-mail addresses
    3. phone numbers
    4. @handles

Usage:
    from chat.content_safety import ContactInfoFilter

    ContactInfoFilter().redact("call me on 555-123-4567")
    # "call me on ********"
"""

from __future__ import annotations

import logging
import re

from chat.constants import CONTENT_SAFETY_CONFIG

logger = logging.getLogger(__name__)


# Order matters: it is the masking order.
PATTERNS: dict[str, re.Pattern] = {
    "whatsapp": re.compile(r"wa\.me/\d+", re.IGNORECASE),
    "telegram": re.compile(r"t\.me/[\w.-]+", re.IGNORECASE),
    "instagram": re.compile(r"instagram\.com/[\w.-]+", re.IGNORECASE),
    "facebook": re.compile(r"facebook\.com/[\w.-]+", re.IGNORECASE),
    "twitter": re.compile(r"(?:twitter\.com|x\.com)/[\w.-]+", re.IGNORECASE),
    "email": re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b", re.IGNORECASE),
    # +1-555-123-4567, (555) 123-4567, 555.123.4567, 5551234567
    "phone": re.compile(r"(?:\+?\d{1,3}[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}\b"),
    # @username, @user.name, @user-name
    "handle": re.compile(r"@[\w.-]+"),
}


class ContactInfoFilter:
    """
    Default content filter: masks contact details with CONTENT_SAFETY_CONFIG.MASK.

    Stateless and safe to share between threads.
    """

    mask = CONTENT_SAFETY_CONFIG.MASK

    def redact(self, text: str) -> str:
        """
        Return text with every contact detail replaced by the mask.

        Masking activity is logged as counts per type. The masked values
        themselves are never logged.
        """
        if not text or not text.strip():
            return text

        masked: dict[str, int] = {}
        for kind, pattern in PATTERNS.items():
            text, count = pattern.subn(self.mask, text)
            if count:
                masked[kind] = count

        if masked:
            logger.info(f"Masked {sum(masked.values())} contact detail(s): {masked}")
        return text

    def contains_sensitive_info(self, text: str) -> bool:
        """Whether any pattern matches, without modifying the text."""
        if not text:
            return False
        return any(pattern.search(text) for pattern in PATTERNS.values())

    def count_sensitive_info(self, text: str) -> dict[str, int]:
        """
        Count matches per type on the unmodified text.

        Patterns are counted independently, so an e-mail address also shows
        up under "handle". Returns an empty dict for empty input.
        """
        if not text:
            return {}
        return {kind: len(pattern.findall(text)) for kind, pattern in PATTERNS.items()}
