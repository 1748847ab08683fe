"""
Django admin configuration for chat models.

Rooms, messages and receipts are read-only here: sequence numbers and
statuses are only changed through the service layer.
"""

from django.contrib import admin

from chat.models import Message, ReadReceipt, Room


class ReadOnlyAdmin(admin.ModelAdmin):
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Room)
class RoomAdmin(ReadOnlyAdmin):
    list_display = [
        "id",
        "engagement_id",
        "status",
        "sequence_counter",
        "created_at",
        "closed_at",
    ]
    list_filter = ["status", "created_at"]
    search_fields = ["id", "engagement_id"]
    ordering = ["-created_at"]


@admin.register(Message)
class MessageAdmin(ReadOnlyAdmin):
    list_display = [
        "id",
        "room",
        "sequence_number",
        "sender_id",
        "status",
        "created_at",
    ]
    list_filter = ["status", "created_at"]
    search_fields = ["id", "content", "room__engagement_id", "sender_id"]
    list_select_related = ["room"]
    ordering = ["-created_at"]


@admin.register(ReadReceipt)
class ReadReceiptAdmin(ReadOnlyAdmin):
    list_display = ["id", "message", "reader_id", "read_at"]
    search_fields = ["message__id", "reader_id"]
    ordering = ["-read_at"]
