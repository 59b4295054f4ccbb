"""Async client for the Kinde management API.

Wraps the handful of calls the access sync needs: permission lookup,
permission grants inside an organization, claim refreshes and user lookup
by email. Every public method runs inside its own RetryExecutor call, so
transient failures (network errors, 5xx, 429, and any other non-2xx answer)
are retried with exponential backoff before surfacing.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional
from urllib.parse import quote

import httpx

from navigator_access.common.config import NavigatorSettings
from navigator_access.common.exceptions import (
    PermissionNotFoundError,
    RemoteTransientError,
)
from navigator_access.common.retry import DEFAULT_RETRY_POLICY, RetryExecutor, RetryPolicy
from navigator_access.identity.schemas import (
    KindePermission,
    KindeUser,
    PermissionGrantRequest,
)

logger = logging.getLogger(__name__)

PERMISSION_ALREADY_ASSIGNED = "PERMISSION_ALREADY_ASSIGNED"

# Kinde's maximum page size; permissions beyond the first page are not searched.
PERMISSION_PAGE_SIZE = 200


@dataclass(frozen=True)
class KindeConfig:
    """Connection settings for the Kinde management API."""

    base_url: str
    access_token: str
    timeout: float = 30.0

    @classmethod
    def from_settings(cls, settings: NavigatorSettings) -> "KindeConfig":
        settings.require_kinde_config()
        return cls(
            base_url=settings.kinde_issuer_url,
            access_token=settings.kinde_api_token,
            timeout=settings.kinde_timeout,
        )


def _segment(value: str) -> str:
    return quote(value, safe="")


class KindeClient:
    """Kinde management API client with retry on every remote call."""

    def __init__(
        self,
        config: KindeConfig,
        retry_policy: RetryPolicy = DEFAULT_RETRY_POLICY,
        http_client: Optional[httpx.AsyncClient] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.base_url = config.base_url.rstrip("/")
        self._access_token = config.access_token
        self._retry = RetryExecutor(retry_policy, sleep=sleep)
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=config.timeout)

    async def close(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> "KindeClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # ── HTTP plumbing ──

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send one request; any failure becomes RemoteTransientError."""
        headers = {
            "Authorization": f"Bearer {self._access_token}",
            "Accept": "application/json",
        }
        try:
            resp = await self._http.request(
                method, f"{self.base_url}{path}", headers=headers, **kwargs,
            )
        except httpx.HTTPError as e:
            raise RemoteTransientError(f"{method} {path} failed: {e}") from e

        if not resp.is_success:
            raise RemoteTransientError(
                f"{method} {path} returned HTTP {resp.status_code}",
                status_code=resp.status_code,
                provider_code=_error_code(resp),
            )
        return resp

    @staticmethod
    def _json(resp: httpx.Response) -> dict[str, Any]:
        try:
            body = resp.json()
        except ValueError as e:
            raise RemoteTransientError(
                "Invalid JSON from identity provider", status_code=resp.status_code,
            ) from e
        return body if isinstance(body, dict) else {}

    async def _run(self, operation: Callable[[], Awaitable[Any]], description: str) -> Any:
        return await self._retry.execute(
            operation,
            retry_on=(RemoteTransientError,),
            give_up_on=(PermissionNotFoundError,),
            description=description,
        )

    # ── Permissions ──

    async def _fetch_permission_id(self, key: str) -> str:
        resp = await self._request(
            "GET", "/api/v1/permissions", params={"page_size": PERMISSION_PAGE_SIZE},
        )
        for raw in self._json(resp).get("permissions") or []:
            permission = KindePermission.model_validate(raw)
            if permission.key == key:
                if not permission.id:
                    break
                return permission.id
        raise PermissionNotFoundError(key)

    async def get_permission_id_by_key(self, key: str) -> str:
        """Return Kinde's internal id for a permission key such as ``access:navigator``."""
        return await self._run(
            lambda: self._fetch_permission_id(key),
            f"get permission id for {key}",
        )

    async def grant_permission(self, request: PermissionGrantRequest) -> bool:
        """Assign a permission to a user inside an organization.

        Returns True when the permission was newly assigned and False when
        Kinde reports it was already assigned. The latter is the idempotent
        path that makes redelivered webhooks safe, and is never retried.
        """

        async def _grant() -> bool:
            permission_id = await self._fetch_permission_id(request.permission_key)
            path = (
                f"/api/v1/organizations/{_segment(request.org_code)}"
                f"/users/{_segment(request.user_id)}/permissions"
            )
            try:
                await self._request("POST", path, json={"permission_id": permission_id})
            except RemoteTransientError as e:
                if e.status_code == 400 and e.provider_code == PERMISSION_ALREADY_ASSIGNED:
                    logger.info(
                        "Permission %s already assigned to user %s",
                        request.permission_key, request.user_id,
                    )
                    return False
                raise
            logger.info(
                "Granted permission %s to user %s",
                request.permission_key, request.user_id,
            )
            return True

        return await self._run(_grant, f"grant {request.permission_key} to {request.user_id}")

    async def get_user_permission_ids(self, org_code: str, user_id: str) -> list[str]:
        """Return ids of the permissions a user holds inside an organization."""

        async def _list() -> list[str]:
            resp = await self._request(
                "GET",
                f"/api/v1/organizations/{_segment(org_code)}"
                f"/users/{_segment(user_id)}/permissions",
            )
            permissions = self._json(resp).get("permissions") or []
            return [
                p.id for p in map(KindePermission.model_validate, permissions) if p.id
            ]

        return await self._run(_list, f"list permissions of {user_id}")

    # ── Users ──

    async def refresh_user_claims(self, user_id: str) -> None:
        """Make Kinde recompute a user's token claims so new permissions show up."""

        async def _refresh() -> None:
            await self._request("POST", f"/api/v1/users/{_segment(user_id)}/refresh_claims")
            logger.info("Refreshed claims for user %s", user_id)

        await self._run(_refresh, f"refresh claims for {user_id}")

    async def find_user_by_email(self, email: str) -> Optional[KindeUser]:
        """Return the user with this email, or None when nobody matches."""

        async def _find() -> Optional[KindeUser]:
            resp = await self._request(
                "GET", "/api/v1/users", params={"email": email, "page_size": 1},
            )
            users = self._json(resp).get("users") or []
            if not users:
                return None
            return KindeUser.model_validate(users[0])

        return await self._run(_find, f"find user {email}")


def _error_code(resp: httpx.Response) -> Optional[str]:
    """First ``errors[].code`` from a Kinde error body, if any."""
    try:
        body = resp.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    errors = body.get("errors")
    if isinstance(errors, list) and errors and isinstance(errors[0], dict):
        return errors[0].get("code")
    return None
