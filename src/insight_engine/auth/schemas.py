"""Pydantic schemas for dashboard login."""

from typing import Optional

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    licenseKey: str = Field(..., min_length=1)
    domain: Optional[str] = None


class LoginResponse(BaseModel):
    valid: bool
    token: str
    isMaster: bool
