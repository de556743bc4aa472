"""Pydantic schemas for licensing endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class LicenseCreate(BaseModel):
    licenseKey: str = Field(..., min_length=1, max_length=255)
    status: str = "active"
    productType: Optional[str] = None
    plan: Optional[str] = None
    domain: Optional[str] = None
    siteKey: Optional[str] = None
    customerName: Optional[str] = None
    email: Optional[str] = None
    subscriptionStatus: Optional[str] = None


class LicenseResponse(BaseModel):
    id: str
    licenseKey: str
    status: str
    productType: Optional[str]
    plan: Optional[str]
    domain: Optional[str]
    customerName: Optional[str]
    email: Optional[str]
    subscriptionStatus: Optional[str]
    usedAt: Optional[datetime]
    createdAt: datetime

    @classmethod
    def from_model(cls, lic) -> "LicenseResponse":
        return cls(
            id=lic.id,
            licenseKey=lic.license_key,
            status=lic.status,
            productType=lic.product_type,
            plan=lic.plan,
            domain=lic.domain,
            customerName=lic.customer_name,
            email=lic.email,
            subscriptionStatus=lic.subscription_status,
            usedAt=lic.used_at,
            createdAt=lic.created_at,
        )


class LicenseList(BaseModel):
    items: list[LicenseResponse]
    total: int
