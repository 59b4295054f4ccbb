"""Shared Pydantic schemas for navigator access."""

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
    service: str = "navigator-access"
