"""SQLAlchemy model for the custom product registry."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from insight_engine.common.models import Base, TimestampMixin, generate_uuid


class CustomProductModel(Base, TimestampMixin):
    __tablename__ = "custom_products"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    product_type: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    source_table: Mapped[str] = mapped_column(String(63), nullable=False)
