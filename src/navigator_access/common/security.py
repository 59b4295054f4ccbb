"""API key authentication dependency."""

import hmac

from fastapi import Header, HTTPException


async def require_api_key(
    x_navigator_api_key: str = Header(..., alias="X-Navigator-Api-Key"),
) -> str:
    """FastAPI dependency that validates admin API key from header."""
    from navigator_access.common.config import get_settings

    settings = get_settings()
    if not hmac.compare_digest(x_navigator_api_key.encode(), settings.api_key.encode()):
        raise HTTPException(status_code=403, detail="Invalid API key")
    return x_navigator_api_key
