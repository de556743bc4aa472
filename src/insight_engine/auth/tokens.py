"""Dashboard credentials: signed session cookies and bearer JWTs."""

from dataclasses import asdict
from datetime import datetime, timedelta, timezone

import jwt
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from insight_engine.tenancy.scope import Principal

COOKIE_NAME = "insight_dash_session"
JWT_ALGORITHM = "HS256"


def _settings():
    from insight_engine.common.config import get_settings
    return get_settings()


def _get_serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(_settings().secret_key, salt="dashboard-session")


def _principal_from_claims(claims: dict) -> Principal | None:
    license_key = claims.get("licenseKey")
    if not license_key:
        return None
    return Principal(
        license_key=license_key,
        is_master=bool(claims.get("isMaster", False)),
        domain=claims.get("domain"),
        customer_name=claims.get("customerName"),
        email=claims.get("email"),
    )


def _claims(principal: Principal) -> dict:
    raw = asdict(principal)
    return {
        "licenseKey": raw["license_key"],
        "isMaster": raw["is_master"],
        "domain": raw["domain"],
        "customerName": raw["customer_name"],
        "email": raw["email"],
    }


def create_session_cookie(principal: Principal) -> str:
    """Sign a principal and return the cookie value."""
    return _get_serializer().dumps(_claims(principal))


def verify_session_cookie(cookie: str) -> Principal | None:
    """Verify and decode a session cookie. Returns the principal or None."""
    try:
        claims = _get_serializer().loads(cookie, max_age=_settings().session_ttl)
    except (BadSignature, SignatureExpired):
        return None
    return _principal_from_claims(claims)


def create_access_token(principal: Principal, now: datetime | None = None) -> str:
    settings = _settings()
    now = now or datetime.now(timezone.utc)
    payload = _claims(principal)
    payload["iat"] = now
    payload["exp"] = now + timedelta(seconds=settings.session_ttl)
    return jwt.encode(payload, settings.jwt_secret, algorithm=JWT_ALGORITHM)


def verify_access_token(token: str) -> Principal | None:
    try:
        claims = jwt.decode(token, _settings().jwt_secret, algorithms=[JWT_ALGORITHM])
    except jwt.PyJWTError:
        return None
    return _principal_from_claims(claims)
