"""Pydantic schemas for Kinde management API data and access endpoints."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class KindeUser(BaseModel):
    """A user record from the Kinde users list."""

    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class KindePermission(BaseModel):
    """A permission record from the Kinde permissions list."""

    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    key: Optional[str] = None
    name: Optional[str] = None


class PermissionGrantRequest(BaseModel):
    """Grant ``permission_key`` to ``user_id`` inside ``org_code``.

    A grant always targets a user that was already looked up, so an empty
    ``user_id`` is rejected.
    """

    model_config = ConfigDict(frozen=True)

    org_code: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    permission_key: str = Field(..., min_length=1)


class AccessRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)


class AccessCheckResponse(BaseModel):
    paid: bool


class AccessGrantResponse(BaseModel):
    granted: bool = True
    user_id: str
