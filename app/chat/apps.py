"""
Chat application configuration.

This app provides the engagement chat:
- One room per paid engagement, created idempotently
- Per-room message sequencing safe under concurrent senders
- Read receipts, delivery acknowledgements and unread counts
- Best-effort notifications for participants who are not in the room
"""

from django.apps import AppConfig


class ChatConfig(AppConfig):
    """Configuration for the chat application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "chat"
    verbose_name = "Chat"

    def ready(self):
        # Registers the setting_changed receiver that resets collaborators
        from chat import adapters  # noqa: F401
