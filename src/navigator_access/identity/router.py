"""Admin endpoints for checking and granting paid access."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from navigator_access.common.exceptions import (
    ConfigurationMissingError,
    NavigatorError,
    RemoteTransientError,
    UserNotFoundError,
)
from navigator_access.common.security import require_api_key
from navigator_access.identity.schemas import (
    AccessCheckResponse,
    AccessGrantResponse,
    AccessRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def _get_service():
    from navigator_access.deps import get_access_service
    return get_access_service()


def _http_error(exc: NavigatorError) -> HTTPException:
    if isinstance(exc, UserNotFoundError):
        return HTTPException(status_code=404, detail=exc.message)
    if isinstance(exc, RemoteTransientError):
        return HTTPException(status_code=502, detail="Identity provider unavailable")
    if isinstance(exc, ConfigurationMissingError):
        return HTTPException(status_code=500, detail="Server configuration error")
    return HTTPException(status_code=500, detail=exc.message)


@router.post("/check-payment", response_model=AccessCheckResponse)
async def check_payment(body: AccessRequest, _=Depends(require_api_key)):
    """Report whether a customer holds the paid-access permission."""
    try:
        paid = await _get_service().has_access(body.email)
    except NavigatorError as e:
        logger.error("Error checking payment status for %s: %s", body.email, e.message)
        raise _http_error(e) from e
    return AccessCheckResponse(paid=paid)


@router.post("/access/grant", response_model=AccessGrantResponse)
async def grant_access(body: AccessRequest, _=Depends(require_api_key)):
    """Grant paid access by hand, e.g. after a lost webhook delivery."""
    try:
        user_id = await _get_service().grant_access(body.email)
    except NavigatorError as e:
        logger.error("Manual grant failed for %s: %s", body.email, e.message)
        raise _http_error(e) from e
    return AccessGrantResponse(user_id=user_id)
