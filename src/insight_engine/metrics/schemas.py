"""Pydantic schemas for metrics endpoints."""

from typing import Optional

from pydantic import BaseModel


class DateRangeRequest(BaseModel):
    dateRange: Optional[str] = "30d"
