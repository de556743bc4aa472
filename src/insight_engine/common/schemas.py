"""Shared Pydantic schemas for Insight-Engine."""

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
    service: str = "insight-engine"


class ErrorResponse(BaseModel):
    error: str
