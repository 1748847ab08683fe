"""
Initial chat schema: rooms, messages and read receipts.
"""

import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Room",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "engagement_id",
                    models.UUIDField(
                        help_text="Engagement (application) this room belongs to",
                        unique=True,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[("active", "Active"), ("closed", "Closed")],
                        db_index=True,
                        default="active",
                        help_text="Whether messages can still be sent",
                        max_length=10,
                    ),
                ),
                (
                    "sequence_counter",
                    models.PositiveBigIntegerField(
                        default=0,
                        help_text="Sequence number of the most recent message",
                    ),
                ),
                (
                    "closed_at",
                    models.DateTimeField(
                        blank=True, help_text="When the room was closed", null=True
                    ),
                ),
                (
                    "closed_by_id",
                    models.UUIDField(
                        blank=True,
                        help_text="User who closed the room (null when closed by the system)",
                        null=True,
                    ),
                ),
            ],
            options={
                "db_table": "chat_room",
                "ordering": ["-updated_at"],
            },
        ),
        migrations.CreateModel(
            name="Message",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "sender_id",
                    models.UUIDField(
                        db_index=True, help_text="User who sent this message"
                    ),
                ),
                (
                    "content",
                    models.TextField(
                        help_text="Message text after contact details were masked"
                    ),
                ),
                (
                    "attachment_ref",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Opaque reference to an uploaded file",
                        max_length=500,
                    ),
                ),
                (
                    "sequence_number",
                    models.PositiveBigIntegerField(
                        help_text="Position of this message in the room, starting at 1"
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("sent", "Sent"),
                            ("delivered", "Delivered"),
                            ("read", "Read"),
                        ],
                        default="sent",
                        help_text="Delivery state",
                        max_length=10,
                    ),
                ),
                (
                    "room",
                    models.ForeignKey(
                        help_text="Room this message belongs to",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="messages",
                        to="chat.room",
                    ),
                ),
            ],
            options={
                "db_table": "chat_message",
                "ordering": ["room_id", "sequence_number"],
            },
        ),
        migrations.CreateModel(
            name="ReadReceipt",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "reader_id",
                    models.UUIDField(
                        db_index=True, help_text="User who read the message"
                    ),
                ),
                (
                    "read_at",
                    models.DateTimeField(
                        help_text="When the reader last marked the message read"
                    ),
                ),
                (
                    "message",
                    models.ForeignKey(
                        help_text="Message that was read",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="read_receipts",
                        to="chat.message",
                    ),
                ),
            ],
            options={
                "db_table": "chat_read_receipt",
                "ordering": ["-read_at"],
            },
        ),
        migrations.AddConstraint(
            model_name="message",
            constraint=models.UniqueConstraint(
                fields=("room", "sequence_number"),
                name="chat_message_room_sequence_uniq",
            ),
        ),
        migrations.AddIndex(
            model_name="message",
            index=models.Index(
                fields=["room", "sender_id"], name="chat_msg_room_sender_idx"
            ),
        ),
        migrations.AddConstraint(
            model_name="readreceipt",
            constraint=models.UniqueConstraint(
                fields=("message", "reader_id"),
                name="chat_receipt_message_reader_uniq",
            ),
        ),
    ]
