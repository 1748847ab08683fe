"""
WebSocket authentication middleware.

Validates the JWT access token passed on connect and stores the user id
claim in scope["user_id"]. Tokens are verified statelessly, the same way
the REST API verifies them; no user table is consulted.

Token Passing Methods:
    1. Query string: ws://host/ws/chat/<engagement_id>/?token=<jwt_token>
       (or ws://host/ws/notifications/?token=<jwt_token>)
    2. Subprotocol: Sec-WebSocket-Protocol: jwt, <jwt_token>

Usage in config/asgi.py:
    application = ProtocolTypeRouter({
        "websocket": JWTAuthMiddleware(URLRouter(websocket_urlpatterns)),
    })
"""

from __future__ import annotations

import logging
from urllib.parse import parse_qs

from channels.middleware import BaseMiddleware
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.tokens import AccessToken

logger = logging.getLogger(__name__)


class JWTAuthMiddleware(BaseMiddleware):
    """
    Attach scope["user_id"] (or None) from the connection's access token.
    """

    async def __call__(self, scope, receive, send):
        token = self._get_token_from_query(scope) or self._get_token_from_subprotocol(scope)
        scope = dict(scope, user_id=self._get_user_id(token) if token else None)
        return await super().__call__(scope, receive, send)

    @staticmethod
    def _get_token_from_query(scope) -> str | None:
        query_string = scope.get("query_string", b"").decode()
        token_list = parse_qs(query_string).get("token", [])
        return token_list[0] if token_list else None

    @staticmethod
    def _get_token_from_subprotocol(scope) -> str | None:
        subprotocols = scope.get("subprotocols", [])
        if len(subprotocols) >= 2 and subprotocols[0] == "jwt":
            return subprotocols[1]
        return None

    @staticmethod
    def _get_user_id(token: str) -> str | None:
        try:
            access_token = AccessToken(token)
        except TokenError as e:
            logger.warning(f"Rejected WebSocket token: {e}")
            return None
        user_id = access_token.get(api_settings.USER_ID_CLAIM)
        return str(user_id) if user_id else None
