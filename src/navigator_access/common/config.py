"""Navigator access configuration via pydantic-settings."""

import warnings
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from navigator_access.common.exceptions import ConfigurationMissingError

_INSECURE_DEFAULTS = {
    "api_key": "insecure-admin-key-change-me",
}

_ENV_PREFIX = "NAVIGATOR_"


class NavigatorSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix=_ENV_PREFIX)

    environment: str = "development"
    log_level: str = "INFO"

    # Kinde management API
    kinde_issuer_url: str = ""
    kinde_api_token: str = ""
    kinde_org_code: str = ""
    kinde_timeout: float = 30.0

    # Stripe webhook
    stripe_webhook_secret: str = ""
    signature_tolerance: int = 300  # seconds, 0 disables the timestamp check

    # Permission granted on a successful checkout
    permission_key: str = "access:navigator"

    # Retry policy for identity provider calls
    retry_max_retries: int = 3
    retry_base_delay_ms: int = 1000
    retry_max_delay_ms: int = 10000

    # API
    api_title: str = "Navigator Access"
    api_version: str = "0.1.0"
    api_key: str = "insecure-admin-key-change-me"
    host: str = "0.0.0.0"
    port: int = 8080

    def _missing(self, *fields: str) -> list[str]:
        return [f"{_ENV_PREFIX}{f.upper()}" for f in fields if not getattr(self, f)]

    def require_kinde_config(self) -> None:
        """Raise ConfigurationMissingError unless the Kinde settings are all set."""
        missing = self._missing("kinde_issuer_url", "kinde_api_token", "kinde_org_code")
        if missing:
            raise ConfigurationMissingError(missing)

    def require_webhook_config(self) -> None:
        """Raise ConfigurationMissingError unless everything the webhook needs is set.

        Lists every missing variable at once, webhook secret first.
        """
        missing = self._missing(
            "stripe_webhook_secret",
            "kinde_issuer_url",
            "kinde_api_token",
            "kinde_org_code",
            "permission_key",
        )
        if missing:
            raise ConfigurationMissingError(missing)

    def validate_for_production(self) -> None:
        """Raise if insecure defaults are used in non-development environments."""
        insecure_fields = [
            field
            for field, default in _INSECURE_DEFAULTS.items()
            if getattr(self, field) == default
        ]

        if self.environment != "development" and insecure_fields:
            env_vars = ", ".join(f"{_ENV_PREFIX}{f.upper()}" for f in insecure_fields)
            raise RuntimeError(
                f"Insecure default values detected in '{self.environment}' environment. "
                f"Set these environment variables to secure values: {env_vars}. "
                "Generate secrets with: python -c \"import secrets; print(secrets.token_urlsafe(48))\""
            )

        if insecure_fields:
            warnings.warn(
                "Using insecure default admin key — set NAVIGATOR_API_KEY for production",
                UserWarning,
                stacklevel=2,
            )


@lru_cache
def get_settings() -> NavigatorSettings:
    settings = NavigatorSettings()
    settings.validate_for_production()
    return settings
