"""Dashboard login API router."""

from fastapi import APIRouter, Response

from insight_engine.auth.schemas import LoginRequest, LoginResponse
from insight_engine.auth.tokens import COOKIE_NAME, create_access_token, create_session_cookie

router = APIRouter()


def _get_service():
    from insight_engine.deps import get_auth_service
    return get_auth_service()


def _get_db():
    from insight_engine.deps import get_db
    return get_db()


@router.post("/auth/login", response_model=LoginResponse)
async def login(body: LoginRequest, response: Response):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        principal = await svc.authenticate(session, body.licenseKey, body.domain)

    response.set_cookie(
        COOKIE_NAME,
        create_session_cookie(principal),
        max_age=svc.settings.session_ttl,
        httponly=True,
        samesite="lax",
    )
    return LoginResponse(
        valid=True,
        token=create_access_token(principal),
        isMaster=principal.is_master,
    )


@router.post("/auth/logout")
async def logout(response: Response):
    response.delete_cookie(COOKIE_NAME)
    return {"success": True}
