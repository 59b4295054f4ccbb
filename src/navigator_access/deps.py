"""Dependency injection singletons for navigator access."""

from navigator_access.common.config import NavigatorSettings, get_settings
from navigator_access.common.retry import RetryPolicy
from navigator_access.identity.kinde_client import KindeClient, KindeConfig
from navigator_access.identity.service import AccessService
from navigator_access.payments.service import PaymentProcessor, WebhookDispatcher

_kinde: KindeClient | None = None
_access: AccessService | None = None
_dispatcher: WebhookDispatcher | None = None


def retry_policy_from_settings(settings: NavigatorSettings) -> RetryPolicy:
    return RetryPolicy(
        max_retries=settings.retry_max_retries,
        base_delay_ms=settings.retry_base_delay_ms,
        max_delay_ms=settings.retry_max_delay_ms,
    )


def get_kinde_client() -> KindeClient:
    """Build the Kinde client on first use; raises ConfigurationMissingError."""
    global _kinde
    if _kinde is None:
        settings = get_settings()
        _kinde = KindeClient(
            KindeConfig.from_settings(settings),
            retry_policy=retry_policy_from_settings(settings),
        )
    return _kinde


def get_access_service() -> AccessService:
    global _access
    if _access is None:
        settings = get_settings()
        _access = AccessService(
            get_kinde_client(),
            org_code=settings.kinde_org_code,
            permission_key=settings.permission_key,
        )
    return _access


def get_webhook_dispatcher() -> WebhookDispatcher:
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = WebhookDispatcher(PaymentProcessor(get_access_service()))
    return _dispatcher


async def close_clients() -> None:
    """Close the shared HTTP client, if one was built, and drop the singletons."""
    if _kinde is not None:
        await _kinde.close()
    reset_singletons()


def reset_singletons() -> None:
    """Reset all singletons (for testing)."""
    global _kinde, _access, _dispatcher
    _kinde = None
    _access = None
    _dispatcher = None
