"""
Unmanaged models over the marketplace tables.

Tables:
    v1_users                  Identity and display name
    v1_brand_profiles         Brand profile, keyed by the owner's user id
    v1_campaigns              Campaign, created_by is the brand owner
    v1_applications           An influencer's application to a campaign (the engagement)
    v1_payment_orders         Payment for an APPLICATION or a whole CAMPAIGN
    v1_application_payments   Applications covered by a CAMPAIGN payment order

Only the columns the chat reads are mapped. Django never creates or alters
these tables (managed = False); the test settings flip managed on so the
test database gets them.
"""

from __future__ import annotations

from django.db import models


class PayableType(models.TextChoices):
    APPLICATION = "APPLICATION", "Application"
    CAMPAIGN = "CAMPAIGN", "Campaign"
    SUBSCRIPTION = "SUBSCRIPTION", "Subscription"


class PaymentOrderStatus(models.TextChoices):
    CREATED = "CREATED", "Created"
    PROCESSING = "PROCESSING", "Processing"
    VERIFIED = "VERIFIED", "Verified"
    FAILED = "FAILED", "Failed"
    REFUNDED = "REFUNDED", "Refunded"


class MarketplaceUser(models.Model):
    id = models.UUIDField(primary_key=True)
    name = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        managed = False
        db_table = "v1_users"

    def __str__(self) -> str:
        return self.name or str(self.id)


class BrandProfile(models.Model):
    user = models.OneToOneField(
        MarketplaceUser,
        on_delete=models.DO_NOTHING,
        primary_key=True,
        db_column="user_id",
        related_name="brand_profile",
    )
    brand_name = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        managed = False
        db_table = "v1_brand_profiles"


class Campaign(models.Model):
    id = models.UUIDField(primary_key=True)
    created_by = models.UUIDField(db_index=True)
    title = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        managed = False
        db_table = "v1_campaigns"

    def __str__(self) -> str:
        return self.title or str(self.id)


class Application(models.Model):
    """An influencer's accepted application: the engagement a chat belongs to."""

    id = models.UUIDField(primary_key=True)
    influencer_id = models.UUIDField(db_index=True)
    campaign = models.ForeignKey(
        Campaign,
        on_delete=models.DO_NOTHING,
        db_column="campaign_id",
        related_name="applications",
    )
    phase = models.CharField(max_length=50, blank=True, default="")

    class Meta:
        managed = False
        db_table = "v1_applications"


class PaymentOrder(models.Model):
    id = models.UUIDField(primary_key=True)
    payable_type = models.CharField(max_length=20, choices=PayableType.choices)
    payable_id = models.UUIDField(db_index=True)
    status = models.CharField(max_length=20, choices=PaymentOrderStatus.choices)

    class Meta:
        managed = False
        db_table = "v1_payment_orders"


class ApplicationPayment(models.Model):
    id = models.UUIDField(primary_key=True)
    application = models.ForeignKey(
        Application,
        on_delete=models.DO_NOTHING,
        db_column="application_id",
        related_name="payments",
    )
    payment_order = models.ForeignKey(
        PaymentOrder,
        on_delete=models.DO_NOTHING,
        db_column="payment_order_id",
        related_name="application_payments",
    )

    class Meta:
        managed = False
        db_table = "v1_application_payments"
