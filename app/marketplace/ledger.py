"""
PaymentLedger backed by the marketplace payment tables.

An engagement is paid when either:
    - an APPLICATION payment order for it is VERIFIED, or
    - it is covered (via v1_application_payments) by a CAMPAIGN payment
      order that is VERIFIED
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from marketplace.models import (
    ApplicationPayment,
    PayableType,
    PaymentOrder,
    PaymentOrderStatus,
)

if TYPE_CHECKING:
    from uuid import UUID

logger = logging.getLogger(__name__)


class DatabasePaymentLedger:
    def is_payment_verified(self, engagement_id: UUID) -> bool:
        # Statuses are stored with inconsistent casing
        direct = PaymentOrder.objects.filter(
            payable_type=PayableType.APPLICATION,
            payable_id=engagement_id,
            status__iexact=PaymentOrderStatus.VERIFIED,
        ).exists()
        if direct:
            return True

        bulk = ApplicationPayment.objects.filter(
            application_id=engagement_id,
            payment_order__payable_type=PayableType.CAMPAIGN,
            payment_order__status__iexact=PaymentOrderStatus.VERIFIED,
        ).exists()
        if not bulk:
            logger.debug(f"No verified payment for engagement {engagement_id}")
        return bulk
