"""Stripe webhook endpoint."""

import logging

from fastapi import APIRouter, Header, Request
from fastapi.responses import JSONResponse

from navigator_access.common.config import get_settings
from navigator_access.common.exceptions import (
    ConfigurationMissingError,
    InvalidSignatureError,
)
from navigator_access.payments.schemas import WebhookAck, WebhookErrorResponse
from navigator_access.payments.stripe_webhook import construct_event

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/stripe", tags=["payments"])


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.post(
    "/webhook",
    response_model=WebhookAck,
    responses={400: {"model": WebhookErrorResponse}, 500: {"model": WebhookErrorResponse}},
)
async def stripe_webhook(
    request: Request,
    stripe_signature: str = Header("", alias="Stripe-Signature"),
):
    """Verify a Stripe event and grant access on checkout completion.

    200 tells Stripe the event was handled; 400 means a bad signature and 500
    asks Stripe to redeliver later.
    """
    # Signature covers the exact bytes Stripe sent.
    body = await request.body()

    if not stripe_signature:
        logger.warning("No Stripe signature found in request")
        return _error(400, "No signature")

    from navigator_access.deps import get_webhook_dispatcher

    settings = get_settings()
    try:
        settings.require_webhook_config()
        event = construct_event(
            body,
            stripe_signature,
            settings.stripe_webhook_secret,
            tolerance=settings.signature_tolerance,
        )
        logger.info("Received webhook event: %s", event.type, extra={"event_id": event.id})
        outcome = await get_webhook_dispatcher().dispatch(event)
    except InvalidSignatureError as e:
        logger.warning("Webhook signature verification failed: %s", e.message)
        return _error(400, "Invalid signature")
    except ConfigurationMissingError as e:
        logger.error("Webhook configuration error: %s", e.message)
        return _error(500, "Server configuration error")
    except Exception:
        logger.exception("Webhook processing error")
        return _error(500, "Internal server error")

    return WebhookAck(outcome=outcome)
