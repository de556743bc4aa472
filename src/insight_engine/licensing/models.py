"""SQLAlchemy models for tenant licenses."""

from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from insight_engine.common.models import Base, TimestampMixin, generate_uuid


class LicenseModel(Base, TimestampMixin):
    __tablename__ = "licenses"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    license_key: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), default="active", index=True)

    product_type: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    plan: Mapped[str | None] = mapped_column(String(50), nullable=True)
    domain: Mapped[str | None] = mapped_column(String(255), nullable=True)
    site_key: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)

    customer_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    subscription_status: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # created_at (from TimestampMixin) doubles as the download time
    used_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
