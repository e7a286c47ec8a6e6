from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from app.core.errors import RateLimited
from app.db.session import get_db
from app.models.user import User
from app.paywall.invalidation import stale_queries_after_unlock
from app.paywall.models import AccessDecision
from app.schemas.chapters import ErrorOut, UnlockResponse
from app.services.auth.csrf import require_csrf
from app.services.auth.rate_limit import check_unlock_rate_limit
from app.services.auth.session import get_current_user
from app.services.entitlements.service import EntitlementService
from app.services.unlocks.service import UnlockService
from app.utils.metrics import chapter_unlocks_total

router = APIRouter(prefix="/api/chapters", tags=["chapters"])

ERROR_RESPONSES = {
    400: {"model": ErrorOut},
    401: {"model": ErrorOut},
    404: {"model": ErrorOut},
}


@router.get("/{chapter_id}/access", response_model=AccessDecision, responses=ERROR_RESPONSES)
def get_chapter_access(
    chapter_id: str,
    response: Response,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> AccessDecision:
    """Current entitlement of the caller for one chapter. Read-only."""
    response.headers["Cache-Control"] = "no-store"
    return EntitlementService(db).check_access(user.id, chapter_id)


@router.post(
    "/{chapter_id}/unlock",
    response_model=UnlockResponse,
    responses={
        **ERROR_RESPONSES,
        402: {"model": ErrorOut},
        403: {"model": ErrorOut},
        409: {"model": ErrorOut},
        429: {"model": ErrorOut},
    },
)
def unlock_chapter(
    chapter_id: str,
    response: Response,
    user: User = Depends(get_current_user),
    _csrf: None = Depends(require_csrf),
    db: Session = Depends(get_db),
) -> UnlockResponse:
    """Spend coins on a paid chapter. Never charges twice for the same chapter."""
    if not check_unlock_rate_limit(user.id):
        chapter_unlocks_total.labels(result=RateLimited.code).inc()
        raise RateLimited()
    result = UnlockService(db).unlock(user.id, chapter_id)
    response.headers["Cache-Control"] = "no-store"
    return UnlockResponse(
        new_balance=result.new_balance,
        unlock_record=result.unlock_record,
        invalidate=[list(key) for key in stale_queries_after_unlock(result.unlock_record.chapter_id)],
    )
