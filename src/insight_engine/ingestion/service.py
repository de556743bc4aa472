"""Ingestion service: validate, normalize and append webhook events."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from insight_engine.common.config import InsightSettings
from insight_engine.common.exceptions import (
    AuthenticationMissingError,
    AuthorizationDeniedError,
    DuplicateEventError,
    MissingFieldError,
)
from insight_engine.events.models import EventLogModel
from insight_engine.events.store import ASSISTANT, USER, resolve_content, resolve_role
from insight_engine.ingestion.schemas import ChatbotEventPayload
from insight_engine.licensing.models import LicenseModel
from insight_engine.licensing.service import INGESTIBLE_STATUSES, LicensingService
from insight_engine.sessions.service import SessionService

logger = logging.getLogger(__name__)


def _to_utc(value: Optional[datetime], default: datetime) -> datetime:
    if value is None:
        return default
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def normalize_event(
    payload: ChatbotEventPayload,
    license_obj: Optional[LicenseModel],
    now: datetime,
) -> EventLogModel:
    """Build the stored row: role inferred, content coalesced, defaults filled in."""
    role = resolve_role(payload.role, payload.customer_message)
    if role == USER:
        customer_message = payload.content or payload.customer_message
    else:
        customer_message = payload.customer_message
    if role == ASSISTANT:
        chatbot_response = payload.content or payload.chatbot_response
    else:
        chatbot_response = payload.chatbot_response

    domain = payload.domain or (license_obj.domain if license_obj else None) or "Unknown"

    return EventLogModel(
        session_id=payload.session_id,
        license_key=payload.license_key,
        domain=domain,
        user_id=payload.user_id,
        conversation_id=payload.conversation_id or payload.session_id,
        role=role,
        content=resolve_content(payload.content, payload.customer_message, payload.chatbot_response),
        customer_message=customer_message,
        chatbot_response=chatbot_response,
        intent_detected=payload.intent_detected,
        timestamp=_to_utc(payload.timestamp, now),
        created_at=now,
    )


class IngestionService:
    """Accepts pipeline events and appends them to the event log."""

    def __init__(
        self,
        settings: InsightSettings,
        licensing: LicensingService,
        sessions: SessionService,
    ):
        self.settings = settings
        self.licensing = licensing
        self.sessions = sessions

    async def _resolve_license(
        self, session: AsyncSession, license_key: Optional[str],
    ) -> Optional[LicenseModel]:
        strict = self.settings.strict_license_validation
        if not license_key:
            if strict:
                raise MissingFieldError("license_key")
            return None

        license_obj = await self.licensing.get_license_by_key(session, license_key)
        if license_obj is None:
            if strict:
                raise AuthenticationMissingError("Invalid license key")
            logger.warning("Ingesting event for unknown license key %s", license_key)
            return None

        if license_obj.status not in INGESTIBLE_STATUSES:
            if strict:
                raise AuthorizationDeniedError("License is not active")
            logger.warning(
                "Ingesting event for license %s with status %s",
                license_key, license_obj.status,
            )
        return license_obj

    async def _seen_recently(
        self,
        session: AsyncSession,
        license_key: str,
        session_id: str,
        since: datetime,
    ) -> bool:
        result = await session.execute(
            select(EventLogModel.id)
            .where(
                EventLogModel.license_key == license_key,
                EventLogModel.session_id == session_id,
                EventLogModel.timestamp >= since,
            )
            .limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def ingest(
        self,
        session: AsyncSession,
        payload: ChatbotEventPayload,
        now: Optional[datetime] = None,
    ) -> dict[str, Any]:
        """Validate and store one event, then summarize its session."""
        if not payload.session_id:
            raise MissingFieldError("session_id")

        now = now or datetime.now(timezone.utc)
        license_obj = await self._resolve_license(session, payload.license_key)

        # Check-then-act: concurrent first events may both stamp used_at
        first_in_window = False
        if license_obj is not None and license_obj.status in INGESTIBLE_STATUSES:
            window = timedelta(minutes=self.settings.activation_window_minutes)
            first_in_window = not await self._seen_recently(
                session, license_obj.license_key, payload.session_id, now - window,
            )

        log = normalize_event(payload, license_obj, now)
        session.add(log)
        try:
            await session.flush()
        except IntegrityError as exc:
            raise DuplicateEventError() from exc

        if first_in_window:
            await self.licensing.mark_used(session, license_obj, now)

        summary = await self.sessions.session_summary(
            session, payload.session_id, license_key=payload.license_key,
        )
        return {
            "success": True,
            "logId": log.id,
            "session": {
                "sessionId": payload.session_id,
                "messageCount": summary.message_count if summary else 1,
                "duration": summary.duration if summary else 0,
                "domain": log.domain,
            },
        }
