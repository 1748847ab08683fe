"""
Abstract base models shared by the domain apps.

Base Classes:
    BaseModel: created_at / updated_at timestamps
    UUIDModel: BaseModel with a UUID primary key

Usage:
    from core.models import UUIDModel

    class Room(UUIDModel):
        engagement_id = models.UUIDField(unique=True)
"""

from __future__ import annotations

import uuid

from django.db import models


class BaseModel(models.Model):
    """
    Abstract base model with creation and modification timestamps.

    Fields:
        created_at: Set once when the row is inserted
        updated_at: Refreshed on every save()

    Note:
        QuerySet.update() bypasses auto_now, so services that update rows in
        bulk set updated_at explicitly.
    """

    created_at = models.DateTimeField(
        auto_now_add=True,
        db_index=True,
        help_text="Timestamp when this record was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="Timestamp when this record was last modified",
    )

    class Meta:
        abstract = True

    def __str__(self) -> str:
        return f"{self.__class__.__name__}(id={self.pk})"


class UUIDModel(BaseModel):
    """
    BaseModel with a non-sequential UUID primary key.

    Identifiers are exposed in URLs and events, so they should not leak
    row counts or be guessable.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier",
    )

    class Meta:
        abstract = True
