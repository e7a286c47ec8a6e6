"""
Reader auth helpers: CSRF token issuing. Sessions are created by the login flow (see app.services.auth.session).
"""
from fastapi import APIRouter, Response

from app.core.config import settings
from app.schemas.chapters import CsrfTokenOut
from app.services.auth.csrf import issue_csrf_token

router = APIRouter(prefix="/api", tags=["auth"])


@router.get("/csrf-token", response_model=CsrfTokenOut)
def get_csrf_token(response: Response) -> CsrfTokenOut:
    """Issue a token; the client echoes it in the X-CSRF-Token header on POST requests."""
    token = issue_csrf_token()
    response.set_cookie(
        settings.csrf_cookie_name,
        token,
        max_age=settings.csrf_token_ttl,
        samesite=settings.session_cookie_samesite,
        secure=settings.session_cookie_secure,
        httponly=False,
    )
    response.headers["Cache-Control"] = "no-store"
    return CsrfTokenOut(csrf_token=token)
