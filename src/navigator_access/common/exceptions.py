"""Navigator access exception hierarchy."""

from typing import Optional


class NavigatorError(Exception):
    """Base exception for all navigator access errors."""

    def __init__(self, message: str = "", code: str = "NAVIGATOR_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class InvalidSignatureError(NavigatorError):
    """Raised when a webhook signature header is absent, malformed, or wrong."""

    def __init__(self, message: str = "Invalid webhook signature"):
        super().__init__(message, code="INVALID_SIGNATURE")


class ConfigurationMissingError(NavigatorError):
    """Raised when required settings are not configured."""

    def __init__(self, missing: list[str]):
        self.missing = list(missing)
        super().__init__(
            f"Missing required environment variables: {', '.join(self.missing)}",
            code="CONFIGURATION_MISSING",
        )


class MissingCustomerEmailError(NavigatorError):
    """Raised when a checkout session carries no customer email."""

    def __init__(self, message: str = "No customer email found in payment session"):
        super().__init__(message, code="MISSING_CUSTOMER_EMAIL")


class UserNotFoundError(NavigatorError):
    """Raised when no identity provider user matches an email."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"User not found with email: {email}", code="USER_NOT_FOUND")


class PermissionNotFoundError(NavigatorError):
    """Raised when no permission record matches a permission key."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f'Permission with key "{key}" not found', code="PERMISSION_NOT_FOUND")


class RemoteTransientError(NavigatorError):
    """Raised when a call to the identity provider fails.

    Covers transport errors and non-2xx responses. ``status_code`` is None
    for transport errors; ``provider_code`` is the first error code in the
    provider's error body, when it sent one.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        provider_code: Optional[str] = None,
    ):
        self.status_code = status_code
        self.provider_code = provider_code
        super().__init__(message, code="REMOTE_FAILURE")
