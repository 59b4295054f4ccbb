"""Stripe event dispatch and the payment-to-permission step."""

import logging

from navigator_access.common.exceptions import MissingCustomerEmailError
from navigator_access.identity.service import AccessService
from navigator_access.payments.schemas import CheckoutSession, WebhookEvent

logger = logging.getLogger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"

# Events Stripe sends to this endpoint that need no action.
IGNORED_EVENT_TYPES: frozenset[str] = frozenset({
    "price.created",
    "product.created",
    "payment_intent.succeeded",
    "payment_intent.created",
    "charge.updated",
    "charge.succeeded",
    "charge.failed",
    "charge.refunded",
    "charge.captured",
    "charge.expired",
})

OUTCOME_PROCESSED = "processed"
OUTCOME_IGNORED = "ignored"
OUTCOME_UNKNOWN = "unknown"


class PaymentProcessor:
    """Turns a completed checkout into the paid-access permission."""

    def __init__(self, access_service: AccessService):
        self.access = access_service

    async def process(self, session: CheckoutSession) -> str:
        """Grant access to the checkout's buyer and return their user id.

        Not guarded against redelivery on its own; a repeated event is safe
        because an already-assigned permission counts as granted.
        """
        email = session.customer_email
        if not email:
            logger.warning("No customer email found in session %s", session.id)
            raise MissingCustomerEmailError()

        logger.info("Processing payment for customer: %s", email)
        try:
            user_id = await self.access.grant_access(email)
        except Exception:
            logger.error("Error processing payment for %s", email)
            raise

        logger.info(
            "Successfully processed payment for %s",
            email,
            extra={"user_id": user_id, "checkout_session": session.id},
        )
        return user_id


class WebhookDispatcher:
    """Routes verified Stripe events by type."""

    def __init__(self, processor: PaymentProcessor):
        self.processor = processor

    async def dispatch(self, event: WebhookEvent) -> str:
        """Handle one event and return its outcome.

        Checkout completions go to the PaymentProcessor and their errors
        propagate. Every other type, known or not, is logged and skipped.
        """
        if event.type == CHECKOUT_COMPLETED:
            await self.processor.process(CheckoutSession.from_event(event))
            return OUTCOME_PROCESSED

        if event.type in IGNORED_EVENT_TYPES:
            logger.info("Unhandled event type: %s", event.type, extra={"event_id": event.id})
            return OUTCOME_IGNORED

        logger.info("Unknown event type: %s", event.type, extra={"event_id": event.id})
        return OUTCOME_UNKNOWN
