"""Stripe webhook signature verification."""

import hashlib
import hmac
import json
import logging
import time
from typing import Optional

from navigator_access.common.exceptions import InvalidSignatureError
from navigator_access.payments.schemas import WebhookEvent

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 300  # seconds


def _compute_signature(payload: bytes, timestamp: str, webhook_secret: str) -> str:
    signed_payload = f"{timestamp}.".encode() + payload
    return hmac.new(
        webhook_secret.encode(),
        signed_payload,
        hashlib.sha256,
    ).hexdigest()


def sign_payload(
    payload: bytes,
    webhook_secret: str,
    timestamp: Optional[int] = None,
) -> str:
    """Build a ``Stripe-Signature`` header value for ``payload``."""
    ts = str(int(time.time()) if timestamp is None else timestamp)
    return f"t={ts},v1={_compute_signature(payload, ts, webhook_secret)}"


def verify_stripe_signature(
    payload: bytes,
    signature_header: str,
    webhook_secret: str,
    tolerance: Optional[int] = DEFAULT_TOLERANCE,
) -> bool:
    """Verify Stripe webhook signature (v1 scheme).

    Stripe sends: t=<timestamp>,v1=<signature>[,v1=<signature>...]
    Only timestamps older than ``tolerance`` seconds are rejected; future
    ones (sender clock ahead) pass.
    Several v1 entries appear while a secret is being rolled; any match wins.
    """
    if not signature_header or not webhook_secret:
        return False

    timestamp = ""
    candidates = []
    for item in signature_header.split(","):
        key, _, value = item.partition("=")
        key, value = key.strip(), value.strip()
        if key == "t":
            timestamp = value
        elif key == "v1" and value:
            candidates.append(value)
    if not timestamp or not candidates:
        return False

    if tolerance:
        try:
            age = time.time() - int(timestamp)
        except ValueError:
            return False
        if age > tolerance:
            logger.warning("Stripe signature timestamp too old (%ds)", int(age))
            return False

    computed = _compute_signature(payload, timestamp, webhook_secret)
    return any(hmac.compare_digest(computed, sig) for sig in candidates)


def construct_event(
    payload: bytes,
    signature_header: str,
    webhook_secret: str,
    tolerance: Optional[int] = DEFAULT_TOLERANCE,
) -> WebhookEvent:
    """Verify ``payload`` against its signature and parse it into a WebhookEvent.

    ``payload`` must be the raw request body: re-serialized JSON will not
    match the signature. Raises InvalidSignatureError on any failure.
    """
    if not verify_stripe_signature(payload, signature_header, webhook_secret, tolerance):
        raise InvalidSignatureError()

    try:
        data = json.loads(payload)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidSignatureError("Webhook body is not valid JSON") from e

    if not isinstance(data, dict) or not isinstance(data.get("type"), str):
        raise InvalidSignatureError("Webhook body has no event type")

    return WebhookEvent(type=data["type"], payload=data, id=str(data.get("id") or ""))
