"""Reconciles Stripe webhook events with job records."""

import logging
from typing import Any, Optional

from src.services.job_service import JobService
from src.services.payment_service import PaymentService

logger = logging.getLogger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"
# Subscription lifecycle events are acknowledged without changing any job.
IGNORED_EVENTS = frozenset({
    "invoice.payment_succeeded",
    "customer.subscription.created",
    "customer.subscription.updated",
})


def _field(obj: Any, name: str) -> Any:
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


class WebhookService:
    """Verify an event, then apply it to the matching job if there is one."""

    def __init__(self, payment_service: PaymentService, job_service: JobService) -> None:
        self._payments = payment_service
        self._jobs = job_service

    def handle(self, payload: bytes, signature: Optional[str]) -> str:
        """Process a raw webhook body. Returns the event type.

        Raises:
            WebhookSignatureError: If the payload cannot be verified; nothing is mutated
        """
        event = self._payments.construct_event(payload, signature)
        event_type = _field(event, "type") or ""

        if event_type == CHECKOUT_COMPLETED:
            session = _field(_field(event, "data"), "object")
            self._mark_session_paid(_field(session, "id"))
        elif event_type in IGNORED_EVENTS:
            logger.info("Acknowledged %s without changes", event_type)
        else:
            logger.debug("Unhandled webhook event type %s", event_type)

        return event_type

    def _mark_session_paid(self, session_id: Optional[str]) -> None:
        if not session_id:
            logger.warning("checkout.session.completed event without a session id")
            return

        job = self._jobs.find_latest_by_correlation(session_id)
        if job is None:
            # The payment can land before the generate request that uses it.
            logger.info("No job yet for checkout session %s", session_id)
            return

        if self._jobs.mark_paid(job.id):
            logger.info("Job %s marked paid from session %s", job.id, session_id)
