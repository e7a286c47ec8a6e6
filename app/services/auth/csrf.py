"""
CSRF protection for mutating reader endpoints (double-submit cookie).
Tokens are signed with itsdangerous so a forged cookie/header pair is rejected too.
"""
import hmac
import secrets

from fastapi import Request
from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired

from app.core.config import settings
from app.core.errors import Forbidden

_serializer = URLSafeTimedSerializer(settings.session_secret, salt="csrf-token")


def issue_csrf_token() -> str:
    return _serializer.dumps(secrets.token_urlsafe(16))


def verify_csrf_token(token: str | None) -> bool:
    if not token:
        return False
    try:
        _serializer.loads(token, max_age=settings.csrf_token_ttl)
    except (BadSignature, SignatureExpired):
        return False
    return True


def require_csrf(request: Request) -> None:
    """FastAPI dependency: header token must equal cookie token and carry a valid signature."""
    if not settings.csrf_enabled:
        return
    header_token = request.headers.get(settings.csrf_header_name)
    cookie_token = request.cookies.get(settings.csrf_cookie_name)
    if not header_token or not cookie_token:
        raise Forbidden("Missing CSRF token. Refresh the page and try again.")
    if not hmac.compare_digest(header_token, cookie_token) or not verify_csrf_token(header_token):
        raise Forbidden("Invalid CSRF token. Refresh the page and try again.")
