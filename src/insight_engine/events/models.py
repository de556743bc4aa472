"""SQLAlchemy model for the conversational event log."""

from datetime import datetime

from sqlalchemy import DateTime, Index, String, Text, func, literal_column
from sqlalchemy.orm import Mapped, mapped_column

from insight_engine.common.models import Base, generate_uuid, utcnow


class EventLogModel(Base):
    """One conversation turn. Rows are append-only."""

    __tablename__ = "event_logs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    session_id: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    # Not a foreign key: events for unknown licenses are kept in permissive mode
    license_key: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    domain: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    user_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    conversation_id: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)

    role: Mapped[str | None] = mapped_column(String(20), nullable=True)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    customer_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    chatbot_response: Mapped[str | None] = mapped_column(Text, nullable=True)
    intent_detected: Mapped[str | None] = mapped_column(String(255), nullable=True)

    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )


# Idempotency key per tenant; keyless events share the empty tenant
Index(
    "uq_event_license_session_ts_role",
    func.coalesce(EventLogModel.license_key, literal_column("''")),
    EventLogModel.session_id,
    EventLogModel.timestamp,
    EventLogModel.role,
    unique=True,
)
