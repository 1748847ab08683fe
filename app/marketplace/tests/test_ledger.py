"""
Tests for DatabasePaymentLedger against the marketplace payment tables.
"""

import pytest

from marketplace.ledger import DatabasePaymentLedger
from marketplace.models import PayableType, PaymentOrderStatus
from marketplace.tests.factories import (
    ApplicationFactory,
    ApplicationPaymentFactory,
    PaymentOrderFactory,
)

pytestmark = pytest.mark.django_db


@pytest.fixture
def ledger():
    return DatabasePaymentLedger()


class TestIsPaymentVerified:
    def test_verified_application_order(self, ledger):
        application = ApplicationFactory()
        PaymentOrderFactory(payable_id=application.id)

        assert ledger.is_payment_verified(application.id) is True

    def test_status_casing_is_ignored(self, ledger):
        application = ApplicationFactory()
        PaymentOrderFactory(payable_id=application.id, status="verified")

        assert ledger.is_payment_verified(application.id) is True

    @pytest.mark.parametrize(
        "status",
        [
            PaymentOrderStatus.CREATED,
            PaymentOrderStatus.PROCESSING,
            PaymentOrderStatus.FAILED,
            PaymentOrderStatus.REFUNDED,
        ],
    )
    def test_unverified_statuses(self, ledger, status):
        application = ApplicationFactory()
        PaymentOrderFactory(payable_id=application.id, status=status)

        assert ledger.is_payment_verified(application.id) is False

    def test_verified_campaign_order_covering_the_application(self, ledger):
        """
        Why it matters: Brands can pay for all accepted applications of a
        campaign in one order; each covered engagement counts as paid.
        """
        payment = ApplicationPaymentFactory()

        assert ledger.is_payment_verified(payment.application_id) is True

    def test_unverified_campaign_order(self, ledger):
        payment = ApplicationPaymentFactory(payment_order__status=PaymentOrderStatus.PROCESSING)

        assert ledger.is_payment_verified(payment.application_id) is False

    def test_order_for_another_payable_type_does_not_count(self, ledger):
        application = ApplicationFactory()
        PaymentOrderFactory(payable_id=application.id, payable_type=PayableType.SUBSCRIPTION)

        assert ledger.is_payment_verified(application.id) is False

    def test_no_orders(self, ledger):
        assert ledger.is_payment_verified(ApplicationFactory().id) is False
