"""Webhook ingestion API router."""

import logging

from fastapi import APIRouter
from sqlalchemy.exc import SQLAlchemyError

from insight_engine.common.exceptions import StoreFailureError
from insight_engine.ingestion.schemas import (
    WEBHOOK_FIELDS,
    ChatbotEventPayload,
    IngestResponse,
)

router = APIRouter()
logger = logging.getLogger(__name__)


def _get_service():
    from insight_engine.deps import get_ingestion_service
    return get_ingestion_service()


def _get_db():
    from insight_engine.deps import get_db
    return get_db()


@router.post("/webhook/chatbot", response_model=IngestResponse)
async def chatbot_webhook(body: ChatbotEventPayload):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            return await svc.ingest(session, body)
    except SQLAlchemyError:
        logger.exception("Chatbot webhook storage failed")
        raise StoreFailureError("Failed to process webhook data")


@router.get("/webhook/chatbot")
async def chatbot_webhook_info():
    return {
        "status": "ready",
        "endpoint": "/webhook/chatbot",
        "method": "POST",
        "fields": WEBHOOK_FIELDS,
    }
