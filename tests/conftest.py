"""Shared test fixtures for navigator access."""

import json
import re

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from navigator_access.common.retry import RetryPolicy
from navigator_access.identity.kinde_client import KindeClient, KindeConfig
from navigator_access.payments.stripe_webhook import sign_payload


WEBHOOK_SECRET = "whsec_test_secret"
API_KEY = "test-admin-api-key"
ORG_CODE = "org_navigator"
PERMISSION_KEY = "access:navigator"
KINDE_URL = "https://navigator.kinde.test"

_ORG_USER_PERMISSIONS = re.compile(r"/api/v1/organizations/([^/]+)/users/([^/]+)/permissions")
_REFRESH_CLAIMS = re.compile(r"/api/v1/users/([^/]+)/refresh_claims")


class FakeKinde:
    """In-memory Kinde management API served through httpx.MockTransport.

    ``fail_next[(method, path)]`` holds status codes to answer with before
    the request is handled normally.
    """

    def __init__(self):
        self.users = {
            "buyer@example.com": {"id": "kp_buyer", "email": "buyer@example.com"},
        }
        self.permissions = [
            {"id": "perm_other", "key": "access:other", "name": "Other"},
            {"id": "perm_nav", "key": PERMISSION_KEY, "name": "Navigator access"},
        ]
        self.assigned: set[tuple[str, str, str]] = set()
        self.refreshed: list[str] = []
        self.requests: list[httpx.Request] = []
        self.fail_next: dict[tuple[str, str], list[int]] = {}

    def calls(self, method: str, path: str) -> int:
        return sum(1 for r in self.requests if r.method == method and r.url.path == path)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        # Raw path keeps escaped ids (e.g. %2F) as a single segment.
        method = request.method
        path = request.url.raw_path.split(b"?")[0].decode()

        queued = self.fail_next.get((method, path))
        if queued:
            return httpx.Response(
                queued.pop(0),
                json={"errors": [{"code": "INTERNAL_ERROR", "message": "try again"}]},
            )

        if method == "GET" and path == "/api/v1/permissions":
            return httpx.Response(200, json={"code": "OK", "permissions": self.permissions})

        if method == "GET" and path == "/api/v1/users":
            user = self.users.get(request.url.params.get("email"))
            return httpx.Response(200, json={"code": "OK", "users": [user] if user else []})

        match = _ORG_USER_PERMISSIONS.fullmatch(path)
        if match:
            org, user_id = match.groups()
            if method == "POST":
                key = (org, user_id, json.loads(request.content)["permission_id"])
                if key in self.assigned:
                    return httpx.Response(400, json={"errors": [{
                        "code": "PERMISSION_ALREADY_ASSIGNED",
                        "message": "Permission already assigned",
                    }]})
                self.assigned.add(key)
                return httpx.Response(200, json={"code": "OK"})
            held = [
                {"id": pid, "name": pid}
                for (o, u, pid) in sorted(self.assigned) if o == org and u == user_id
            ]
            return httpx.Response(200, json={"code": "OK", "permissions": held})

        match = _REFRESH_CLAIMS.fullmatch(path)
        if match and method == "POST":
            self.refreshed.append(match.group(1))
            return httpx.Response(200, json={"code": "OK"})

        return httpx.Response(404, json={"errors": [{"code": "ROUTE_NOT_FOUND"}]})


@pytest.fixture
def fake_kinde():
    return FakeKinde()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
async def kinde_client(fake_kinde, sleeps):
    async def record_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    http = httpx.AsyncClient(transport=httpx.MockTransport(fake_kinde.handler))
    client = KindeClient(
        KindeConfig(base_url=KINDE_URL + "/", access_token="test-token"),
        retry_policy=RetryPolicy(max_retries=3, base_delay_ms=1000, max_delay_ms=10000),
        http_client=http,
        sleep=record_sleep,
    )
    yield client
    await http.aclose()


@pytest.fixture
def configured_env(monkeypatch):
    monkeypatch.setenv("NAVIGATOR_STRIPE_WEBHOOK_SECRET", WEBHOOK_SECRET)
    monkeypatch.setenv("NAVIGATOR_KINDE_ISSUER_URL", KINDE_URL)
    monkeypatch.setenv("NAVIGATOR_KINDE_API_TOKEN", "test-token")
    monkeypatch.setenv("NAVIGATOR_KINDE_ORG_CODE", ORG_CODE)
    monkeypatch.setenv("NAVIGATOR_API_KEY", API_KEY)


@pytest.fixture
def app(configured_env, kinde_client, monkeypatch):
    """Create a test app whose Kinde client talks to FakeKinde."""
    # Clear caches and singletons so new env vars take effect
    from navigator_access.common.config import get_settings
    get_settings.cache_clear()

    from navigator_access import deps
    deps.reset_singletons()
    monkeypatch.setattr(deps, "_kinde", kinde_client)

    from navigator_access.app import create_app
    yield create_app()

    deps.reset_singletons()
    get_settings.cache_clear()


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def admin_headers():
    return {"X-Navigator-Api-Key": API_KEY}


def signed_request(event: dict, secret: str = WEBHOOK_SECRET) -> tuple[bytes, dict[str, str]]:
    """Serialize ``event`` and sign the exact bytes that will be sent."""
    body = json.dumps(event).encode()
    return body, {
        "Stripe-Signature": sign_payload(body, secret),
        "Content-Type": "application/json",
    }


def checkout_event(email: str | None = "buyer@example.com", **session_fields) -> dict:
    session = {"id": "cs_test_123", "object": "checkout.session", **session_fields}
    if email is not None:
        session["customer_details"] = {"email": email, "name": "Jane Buyer"}
    return {
        "id": "evt_test_1",
        "type": "checkout.session.completed",
        "data": {"object": session},
    }
