"""Pydantic schemas for the custom product registry."""

from typing import Optional

from pydantic import BaseModel, Field


class CustomProductCreate(BaseModel):
    licenseKey: str = Field(..., min_length=1)
    productType: str = Field(..., min_length=1, max_length=100)
    customerEmail: str = Field(..., min_length=1)
    tableName: str = Field(..., min_length=1, max_length=63)
    name: Optional[str] = None


class CustomProductResponse(BaseModel):
    success: bool = True
    productType: str
    name: str
    tableName: str
