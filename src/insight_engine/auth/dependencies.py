"""FastAPI dependencies that resolve the calling principal."""

from typing import Optional

from fastapi import Request

from insight_engine.auth.tokens import COOKIE_NAME, verify_access_token, verify_session_cookie
from insight_engine.common.exceptions import AuthenticationMissingError
from insight_engine.tenancy.scope import Principal


def resolve_principal(request: Request) -> Optional[Principal]:
    """Bearer token first, then the dashboard cookie."""
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() == "bearer" and token:
        principal = verify_access_token(token.strip())
        if principal is not None:
            return principal

    cookie = request.cookies.get(COOKIE_NAME)
    if cookie:
        return verify_session_cookie(cookie)
    return None


async def require_principal(request: Request) -> Principal:
    principal = resolve_principal(request)
    if principal is None:
        raise AuthenticationMissingError()
    return principal
