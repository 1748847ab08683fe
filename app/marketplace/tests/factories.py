"""
Factory Boy factories for the marketplace tables.

The tables are owned by another service; in tests they are created by
syncdb (see app/conftest.py) and filled with these factories.
"""

import uuid

import factory

from marketplace.models import (
    Application,
    ApplicationPayment,
    BrandProfile,
    Campaign,
    MarketplaceUser,
    PayableType,
    PaymentOrder,
    PaymentOrderStatus,
)


class MarketplaceUserFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = MarketplaceUser

    id = factory.LazyFunction(uuid.uuid4)
    name = factory.Faker("name")


class BrandProfileFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = BrandProfile

    user = factory.SubFactory(MarketplaceUserFactory)
    brand_name = factory.Faker("company")


class CampaignFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Campaign

    id = factory.LazyFunction(uuid.uuid4)
    created_by = factory.LazyFunction(uuid.uuid4)
    title = factory.Faker("catch_phrase")


class ApplicationFactory(factory.django.DjangoModelFactory):
    """An engagement: influencer_id applied to campaign."""

    class Meta:
        model = Application

    id = factory.LazyFunction(uuid.uuid4)
    influencer_id = factory.LazyFunction(uuid.uuid4)
    campaign = factory.SubFactory(CampaignFactory)
    phase = "ACCEPTED"


class PaymentOrderFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = PaymentOrder

    id = factory.LazyFunction(uuid.uuid4)
    payable_type = PayableType.APPLICATION
    payable_id = factory.LazyFunction(uuid.uuid4)
    status = PaymentOrderStatus.VERIFIED


class ApplicationPaymentFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = ApplicationPayment

    id = factory.LazyFunction(uuid.uuid4)
    application = factory.SubFactory(ApplicationFactory)
    payment_order = factory.SubFactory(
        PaymentOrderFactory,
        payable_type=PayableType.CAMPAIGN,
        payable_id=factory.SelfAttribute("..application.campaign_id"),
    )
