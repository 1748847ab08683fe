"""
Chat app for engagement messaging.

This app handles:
- Room lifecycle for paid engagements (create, close)
- Message sending with per-room sequence numbers and contact masking
- Read receipts, delivery acknowledgements and unread counts
- Notifications for participants who are not viewing the room

Related apps:
    - marketplace: Default engagement directory and payment ledger

Usage:
    from chat.services import RoomService, MessageService

    room = RoomService.create_room(engagement_id).data
    MessageService.send_message(sender_id, engagement_id, "Hello!")
"""
