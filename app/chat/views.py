"""
API views for the engagement chat.

URL Structure (prefixed with /api/v1/chat/):
    rooms/                                     GET     Rooms of the current user
    {engagement_id}/                           GET     Room of an engagement
    {engagement_id}/                           POST    Create the room (idempotent)
    {engagement_id}/close/                     POST    Close the room
    {engagement_id}/messages/                  GET     History (limit, offset)
    {engagement_id}/messages/                  POST    Send a message
    {engagement_id}/delivered/                 POST    Acknowledge delivery
    {engagement_id}/presence/                  PUT     Enter / refresh presence
    {engagement_id}/presence/                  DELETE  Leave
    messages/{message_id}/read/                POST    Mark a message read
    messages/{message_id}/receipts/            GET     Read receipts

Design Decisions:
    - Views are thin: parse input, call a service, map the result
    - Identity comes from a stateless JWT; the user id claim is a UUID
      issued by the identity service, there is no local user table
    - ServiceResult error codes map to HTTP statuses in one place
      (ERROR_STATUS); raised application errors are rendered by
      core.exceptions.api_exception_handler
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView

from chat.authorization import ChatAuthorizationService
from chat.constants import HISTORY_CONFIG, ChatErrorCode
from chat.notifications import PresenceService
from chat.serializers import (
    DeliveryAckSerializer,
    HistoryPageSerializer,
    MessageCreateSerializer,
    MessageSerializer,
    PresenceSerializer,
    ReadReceiptSerializer,
    RoomSerializer,
    RoomSummarySerializer,
)
from chat.services import MessageService, ReadReceiptService, RoomService

if TYPE_CHECKING:
    from core.services import ServiceResult

ERROR_STATUS = {
    ChatErrorCode.ACCESS_DENIED: status.HTTP_403_FORBIDDEN,
    ChatErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ChatErrorCode.INVALID_STATE: status.HTTP_409_CONFLICT,
    ChatErrorCode.PAYMENT_NOT_VERIFIED: status.HTTP_402_PAYMENT_REQUIRED,
    ChatErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
}

ACCESS_DENIED_BODY = {
    "error": "You do not have access to this chat",
    "error_code": ChatErrorCode.ACCESS_DENIED,
}


def failure_response(result: ServiceResult) -> Response:
    """Render a failed ServiceResult with the status for its error code."""
    return Response(
        result.to_response(),
        status=ERROR_STATUS.get(result.error_code, status.HTTP_400_BAD_REQUEST),
    )


def request_user_id(request) -> uuid.UUID:
    """The authenticated identity as a UUID."""
    try:
        return uuid.UUID(str(request.user.id))
    except (AttributeError, TypeError, ValueError, KeyError):
        raise AuthenticationFailed("Token does not identify a user")


class ChatAPIView(APIView):
    permission_classes = [IsAuthenticated]

    @property
    def user_id(self) -> uuid.UUID:
        return request_user_id(self.request)


class UserRoomsView(ChatAPIView):
    """
    GET /api/v1/chat/rooms/
        Rooms of every engagement the user takes part in.
    """

    @extend_schema(
        operation_id="list_chat_rooms",
        summary="List my chats",
        description=(
            "List the chat rooms of every engagement the current user takes part "
            "in, with the latest message and the number of unread messages. "
            "Sorted by most recent activity."
        ),
        responses={200: RoomSummarySerializer(many=True)},
        tags=["Chat - Rooms"],
    )
    def get(self, request):
        summaries = ReadReceiptService.get_user_rooms(self.user_id)
        return Response(RoomSummarySerializer(summaries, many=True).data)


class RoomView(ChatAPIView):
    """
    GET  /api/v1/chat/{engagement_id}/
    POST /api/v1/chat/{engagement_id}/
    """

    @extend_schema(
        operation_id="get_chat_room",
        summary="Get chat",
        responses={
            200: RoomSerializer,
            403: OpenApiResponse(description="Not a participant of the engagement"),
            404: OpenApiResponse(description="No chat exists for the engagement yet"),
        },
        tags=["Chat - Rooms"],
    )
    def get(self, request, engagement_id):
        result = RoomService.get_room(engagement_id, self.user_id)
        if not result.success:
            return failure_response(result)
        return Response(RoomSerializer(result.data).data)

    @extend_schema(
        operation_id="create_chat_room",
        summary="Create chat",
        description=(
            "Create the chat for a paid engagement. Returns the existing chat if "
            "one was already created, so repeated calls are safe."
        ),
        request=None,
        responses={
            200: RoomSerializer,
            402: OpenApiResponse(description="Payment for the engagement is not verified"),
            403: OpenApiResponse(description="Not a participant of the engagement"),
        },
        tags=["Chat - Rooms"],
    )
    def post(self, request, engagement_id):
        if not ChatAuthorizationService.validate_access(self.user_id, engagement_id):
            return Response(ACCESS_DENIED_BODY, status=status.HTTP_403_FORBIDDEN)

        result = RoomService.create_room(engagement_id)
        if not result.success:
            return failure_response(result)
        return Response(RoomSerializer(result.data).data)


class RoomCloseView(ChatAPIView):
    """POST /api/v1/chat/{engagement_id}/close/"""

    @extend_schema(
        operation_id="close_chat_room",
        summary="Close chat",
        description=(
            "Close the chat. No further messages can be sent and the chat cannot "
            "be reopened. The other participant is notified."
        ),
        request=None,
        responses={
            200: RoomSerializer,
            403: OpenApiResponse(description="Not a participant of the engagement"),
            404: OpenApiResponse(description="No chat exists for the engagement"),
        },
        tags=["Chat - Rooms"],
    )
    def post(self, request, engagement_id):
        result = RoomService.close_room(engagement_id, closed_by=self.user_id)
        if not result.success:
            return failure_response(result)
        return Response(RoomSerializer(result.data).data)


class RoomMessagesView(ChatAPIView):
    """
    GET  /api/v1/chat/{engagement_id}/messages/?limit=20&offset=0
    POST /api/v1/chat/{engagement_id}/messages/

    Sending is throttled per user with the "chat_send" rate.
    """

    throttle_scope = "chat_send"

    def get_throttles(self):
        if self.request.method == "POST":
            return [ScopedRateThrottle()]
        return super().get_throttles()

    @extend_schema(
        operation_id="get_chat_history",
        summary="Get chat history",
        description=(
            "Messages in sequence order. limit is clamped to "
            f"[{HISTORY_CONFIG.MIN_LIMIT}, {HISTORY_CONFIG.MAX_LIMIT}] "
            f"(default {HISTORY_CONFIG.DEFAULT_LIMIT}); offset to >= 0."
        ),
        parameters=[
            OpenApiParameter("limit", OpenApiTypes.INT, OpenApiParameter.QUERY),
            OpenApiParameter("offset", OpenApiTypes.INT, OpenApiParameter.QUERY),
        ],
        responses={
            200: HistoryPageSerializer,
            403: OpenApiResponse(description="Not a participant of the engagement"),
        },
        tags=["Chat - Messages"],
    )
    def get(self, request, engagement_id):
        if not ChatAuthorizationService.validate_access(self.user_id, engagement_id):
            return Response(ACCESS_DENIED_BODY, status=status.HTTP_403_FORBIDDEN)

        page = MessageService.get_history(
            engagement_id,
            limit=request.query_params.get("limit", HISTORY_CONFIG.DEFAULT_LIMIT),
            offset=request.query_params.get("offset", 0),
        )
        return Response(HistoryPageSerializer(page).data)

    @extend_schema(
        operation_id="send_chat_message",
        summary="Send message",
        description=(
            "Send a message. Phone numbers, e-mail addresses, social handles and "
            "social/messenger links are masked before the message is stored."
        ),
        request=MessageCreateSerializer,
        responses={
            201: MessageSerializer,
            400: OpenApiResponse(description="Empty or oversized content"),
            403: OpenApiResponse(description="Not a participant of the engagement"),
            404: OpenApiResponse(description="No chat exists for the engagement"),
            409: OpenApiResponse(description="The chat is closed"),
        },
        tags=["Chat - Messages"],
    )
    def post(self, request, engagement_id):
        serializer = MessageCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = MessageService.send_message(
            sender_id=self.user_id,
            engagement_id=engagement_id,
            content=serializer.validated_data["content"],
            attachment_ref=serializer.validated_data.get("attachment_ref"),
        )
        if not result.success:
            return failure_response(result)
        return Response(MessageSerializer(result.data).data, status=status.HTTP_201_CREATED)


class DeliveryAckView(ChatAPIView):
    """POST /api/v1/chat/{engagement_id}/delivered/"""

    @extend_schema(
        operation_id="ack_chat_delivery",
        summary="Acknowledge delivery",
        description="Mark every sent message from the other participant as delivered.",
        request=None,
        responses={200: DeliveryAckSerializer},
        tags=["Chat - Messages"],
    )
    def post(self, request, engagement_id):
        result = MessageService.acknowledge_delivery(engagement_id, self.user_id)
        if not result.success:
            return failure_response(result)
        return Response(DeliveryAckSerializer({"delivered": result.data}).data)


class RoomPresenceView(ChatAPIView):
    """
    PUT    /api/v1/chat/{engagement_id}/presence/
    DELETE /api/v1/chat/{engagement_id}/presence/

    Clients PUT on opening the room and every heartbeat interval while it
    stays open. A present participant gets no push for new messages.
    """

    @extend_schema(
        operation_id="enter_chat_room",
        summary="Enter chat",
        request=None,
        responses={200: PresenceSerializer},
        tags=["Chat - Presence"],
    )
    def put(self, request, engagement_id):
        result = PresenceService.enter_room(self.user_id, engagement_id)
        if not result.success:
            return failure_response(result)
        return Response(PresenceSerializer(result.data).data)

    @extend_schema(
        operation_id="leave_chat_room",
        summary="Leave chat",
        request=None,
        responses={204: None},
        tags=["Chat - Presence"],
    )
    def delete(self, request, engagement_id):
        PresenceService.leave_room(self.user_id, engagement_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class MessageReadView(ChatAPIView):
    """POST /api/v1/chat/messages/{message_id}/read/"""

    @extend_schema(
        operation_id="mark_chat_message_read",
        summary="Mark message read",
        description=(
            "Record that the current user read the message. Repeating the call "
            "refreshes read_at. Marking your own message does nothing and "
            "returns 204."
        ),
        request=None,
        responses={
            200: ReadReceiptSerializer,
            204: OpenApiResponse(description="Own message, nothing recorded"),
            403: OpenApiResponse(description="Not a participant of the engagement"),
            404: OpenApiResponse(description="Message not found"),
        },
        tags=["Chat - Read receipts"],
    )
    def post(self, request, message_id):
        result = ReadReceiptService.mark_read(message_id, self.user_id)
        if not result.success:
            return failure_response(result)
        if result.data is None:
            return Response(status=status.HTTP_204_NO_CONTENT)
        return Response(ReadReceiptSerializer(result.data).data)


class MessageReceiptsView(ChatAPIView):
    """GET /api/v1/chat/messages/{message_id}/receipts/"""

    @extend_schema(
        operation_id="list_chat_message_receipts",
        summary="List read receipts",
        responses={
            200: ReadReceiptSerializer(many=True),
            403: OpenApiResponse(description="Not a participant of the engagement"),
            404: OpenApiResponse(description="Message not found"),
        },
        tags=["Chat - Read receipts"],
    )
    def get(self, request, message_id):
        result = ReadReceiptService.get_receipts(message_id, requester_id=self.user_id)
        if not result.success:
            return failure_response(result)
        return Response(ReadReceiptSerializer(result.data, many=True).data)
