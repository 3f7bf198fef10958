"""Stripe checkout integration."""

import logging
from dataclasses import dataclass
from typing import Any, Optional

import stripe

from config.settings import (
    ORIGIN,
    STRIPE_PRICE_ONE_TIME,
    STRIPE_PRICE_SUB_MONTHLY,
    STRIPE_SECRET_KEY,
    STRIPE_WEBHOOK_SECRET,
)
from src.services.errors import (
    PaymentRequiredError,
    UpstreamError,
    ValidationError,
    WebhookSignatureError,
)

logger = logging.getLogger(__name__)

CHECKOUT_MODES = ("payment", "subscription")


@dataclass
class CheckoutSession:
    """The subset of a Stripe checkout session the service relies on."""

    id: str
    payment_status: Optional[str] = None
    status: Optional[str] = None
    url: Optional[str] = None

    @property
    def is_paid(self) -> bool:
        return self.payment_status == "paid" or self.status == "complete"


class PaymentService:
    """Thin wrapper over the Stripe SDK: create, retrieve, and verify."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        webhook_secret: Optional[str] = None,
        price_one_time: Optional[str] = None,
        price_subscription: Optional[str] = None,
        origin: str = ORIGIN,
    ) -> None:
        self.api_key = api_key or STRIPE_SECRET_KEY
        self.webhook_secret = webhook_secret or STRIPE_WEBHOOK_SECRET
        self.price_one_time = price_one_time or STRIPE_PRICE_ONE_TIME
        self.price_subscription = price_subscription or STRIPE_PRICE_SUB_MONTHLY
        self.origin = origin.rstrip("/")
        # Failures surface to the caller; nothing in the service retries.
        stripe.max_network_retries = 0

        if not self.api_key:
            logger.warning("STRIPE_SECRET_KEY is not configured; paid generations will be rejected")

    def create_checkout_session(self, email: str, mode: str = "payment") -> CheckoutSession:
        if mode not in CHECKOUT_MODES:
            raise ValidationError(f"Unsupported checkout mode: {mode}", code="bad_request")

        price = self.price_one_time if mode == "payment" else self.price_subscription
        try:
            session = stripe.checkout.Session.create(
                api_key=self.api_key,
                mode=mode,
                customer_email=email,
                line_items=[{"price": price, "quantity": 1}],
                success_url=f"{self.origin}/success.html?session_id={{CHECKOUT_SESSION_ID}}",
                cancel_url=f"{self.origin}/index.html#cancelled",
                allow_promotion_codes=True,
            )
        except stripe.StripeError as error:
            logger.error(f"Failed to create checkout session: {error}")
            raise UpstreamError(f"Could not create checkout session: {error}") from error
        logger.info("Created %s checkout session %s", mode, session.id)
        return self._to_checkout_session(session)

    def retrieve_session(self, session_id: str) -> CheckoutSession:
        """Fetch a checkout session. Unknown ids raise PaymentRequiredError; other failures UpstreamError."""
        try:
            session = stripe.checkout.Session.retrieve(session_id, api_key=self.api_key)
        except stripe.InvalidRequestError as error:
            if error.code != "resource_missing":
                logger.error(f"Failed to retrieve checkout session {session_id}: {error}")
                raise UpstreamError(f"Could not retrieve checkout session: {error}") from error
            logger.info("Checkout session %s does not exist", session_id)
            raise PaymentRequiredError("Payment has not been confirmed") from error
        except stripe.StripeError as error:
            logger.error(f"Failed to retrieve checkout session {session_id}: {error}")
            raise UpstreamError(f"Could not retrieve checkout session: {error}") from error
        return self._to_checkout_session(session)

    def construct_event(self, payload: bytes, signature: Optional[str]) -> Any:
        """Verify ``payload`` against the Stripe-Signature header and parse it."""
        if not self.webhook_secret:
            raise WebhookSignatureError("Webhook secret is not configured")
        try:
            return stripe.Webhook.construct_event(payload, signature or "", self.webhook_secret)
        except (ValueError, stripe.SignatureVerificationError) as error:
            raise WebhookSignatureError(f"Webhook Error: {error}") from error

    @staticmethod
    def _to_checkout_session(session: Any) -> CheckoutSession:
        return CheckoutSession(
            id=getattr(session, "id", ""),
            payment_status=getattr(session, "payment_status", None),
            status=getattr(session, "status", None),
            url=getattr(session, "url", None),
        )
