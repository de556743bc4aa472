"""Session views API router."""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError

from insight_engine.auth.dependencies import require_principal
from insight_engine.common.exceptions import StoreFailureError
from insight_engine.tenancy.scope import Principal

router = APIRouter()
logger = logging.getLogger(__name__)


def _get_service():
    from insight_engine.deps import get_session_service
    return get_session_service()


def _get_db():
    from insight_engine.deps import get_db
    return get_db()


@router.get("/dashboard/chatbot/sessions")
async def chatbot_sessions(
    view: str = Query("all"),
    domain: str | None = Query(None),
    limit: int = Query(50, ge=1),
    principal: Principal = Depends(require_principal),
):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            return await svc.list_sessions(
                session, principal, view=view, domain=domain, limit=limit,
            )
    except SQLAlchemyError:
        logger.exception("Chatbot sessions query failed")
        raise StoreFailureError("Failed to fetch chatbot sessions")


@router.get("/conversations/{conversation_id}")
async def conversation_messages(
    conversation_id: str,
    principal: Principal = Depends(require_principal),
):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            return await svc.conversation_messages(session, principal, conversation_id)
    except SQLAlchemyError:
        logger.exception("Conversation fetch failed")
        raise StoreFailureError("Failed to load conversation")
