"""Navigator access: syncs Stripe payments into Kinde access permissions."""

from navigator_access.common.retry import RetryExecutor, RetryPolicy
from navigator_access.identity.kinde_client import KindeClient, KindeConfig
from navigator_access.payments.stripe_webhook import construct_event, verify_stripe_signature

__all__ = [
    "KindeClient",
    "KindeConfig",
    "RetryExecutor",
    "RetryPolicy",
    "construct_event",
    "verify_stripe_signature",
]
__version__ = "0.1.0"
