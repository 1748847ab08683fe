"""
WebSocket URL routing for the chat application.

URL Patterns:
    ws/chat/<engagement_id>/ - Two-way room stream for an engagement
    ws/notifications/ - Per-user chat notification stream

Authentication:
    JWT access token as ?token=<jwt> or the "jwt, <token>" subprotocol.
"""

from django.urls import path

from chat import consumers

websocket_urlpatterns = [
    path("ws/chat/<uuid:engagement_id>/", consumers.ChatRoomConsumer.as_asgi()),
    path("ws/notifications/", consumers.NotificationConsumer.as_asgi()),
]
