"""
URL configuration for the chat API.

All URLs are prefixed with /api/v1/chat/ in the main URL configuration.
See chat.views for the endpoint table.
"""

from django.urls import path

from chat.views import (
    DeliveryAckView,
    MessageReadView,
    MessageReceiptsView,
    RoomCloseView,
    RoomMessagesView,
    RoomPresenceView,
    RoomView,
    UserRoomsView,
)

app_name = "chat"

urlpatterns = [
    path("rooms/", UserRoomsView.as_view(), name="room-list"),
    # Message-level routes
    path(
        "messages/<uuid:message_id>/read/",
        MessageReadView.as_view(),
        name="message-read",
    ),
    path(
        "messages/<uuid:message_id>/receipts/",
        MessageReceiptsView.as_view(),
        name="message-receipts",
    ),
    # Engagement-level routes
    path("<uuid:engagement_id>/", RoomView.as_view(), name="room-detail"),
    path("<uuid:engagement_id>/close/", RoomCloseView.as_view(), name="room-close"),
    path(
        "<uuid:engagement_id>/messages/",
        RoomMessagesView.as_view(),
        name="room-messages",
    ),
    path(
        "<uuid:engagement_id>/delivered/",
        DeliveryAckView.as_view(),
        name="room-delivered",
    ),
    path(
        "<uuid:engagement_id>/presence/",
        RoomPresenceView.as_view(),
        name="room-presence",
    ),
]
