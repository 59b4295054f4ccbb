"""Pydantic schemas for Stripe webhook events."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class WebhookEvent(BaseModel):
    """A verified Stripe event. Built only by ``construct_event``."""

    model_config = ConfigDict(frozen=True)

    type: str
    payload: dict[str, Any] = Field(default_factory=dict)
    id: str = ""

    @property
    def data_object(self) -> dict[str, Any]:
        """The event's ``data.object``, or the payload itself for flat events."""
        data = self.payload.get("data")
        obj = data.get("object") if isinstance(data, dict) else None
        return obj if isinstance(obj, dict) else self.payload


class CheckoutSession(BaseModel):
    """The part of a Stripe checkout session the access sync cares about."""

    model_config = ConfigDict(frozen=True)

    id: str = ""
    customer_email: Optional[str] = None

    @classmethod
    def from_event(cls, event: WebhookEvent) -> "CheckoutSession":
        """Read the buyer's email, preferring ``customer_details.email``.

        ``customer_email`` is the legacy location and only used as a fallback.
        """
        session = event.data_object
        details = session.get("customer_details")
        email = details.get("email") if isinstance(details, dict) else None
        return cls(
            id=session.get("id") or "",
            customer_email=email or session.get("customer_email") or None,
        )


class WebhookAck(BaseModel):
    received: bool = True
    outcome: str


class WebhookErrorResponse(BaseModel):
    error: str
