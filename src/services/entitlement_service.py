"""Entitlement checks that gate paid generations."""

import logging
from typing import Optional

from src.services.errors import MissingSessionError, PaymentRequiredError
from src.services.job_service import KIND_DEMO
from src.services.payment_service import PaymentService

logger = logging.getLogger(__name__)


class EntitlementService:
    """Decide whether a generation request may proceed.

    Demo requests are always allowed. Everything else needs a checkout session
    that Stripe reports as paid or complete; Stripe stays the source of truth.
    An unknown session is treated as unpaid.
    """

    def __init__(self, payment_service: PaymentService) -> None:
        self._payments = payment_service

    def check(self, kind: str, correlation_id: Optional[str] = None) -> None:
        if kind == KIND_DEMO:
            return

        if not correlation_id:
            raise MissingSessionError("A checkout session id is required")

        # Provider failures propagate as UpstreamError.
        session = self._payments.retrieve_session(correlation_id)

        if not session.is_paid:
            logger.info(
                "Session %s not paid (payment_status=%s, status=%s)",
                correlation_id,
                session.payment_status,
                session.status,
            )
            raise PaymentRequiredError("Payment has not been confirmed")
