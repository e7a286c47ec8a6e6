import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.chapter_unlock import ChapterUnlock
from app.paywall.access import decide_access
from app.paywall.models import AccessContext, AccessDecision
from app.services.chapters.service import ChapterService
from app.utils.identifiers import parse_id
from app.utils.metrics import access_checks_total

logger = logging.getLogger(__name__)


class EntitlementService:
    """Read-only: answers "can this user read this chapter" without mutating anything."""

    def __init__(self, db: Session):
        self.db = db
        self.chapters = ChapterService(db)

    def check_access(self, user_id: str, chapter_id: str) -> AccessDecision:
        chapter_id = parse_id(chapter_id, "chapter id")
        chapter = self.chapters.get_published_or_404(chapter_id)
        ctx = AccessContext(
            user_id=user_id,
            chapter_id=chapter.id,
            access_tier=chapter.access_tier,
            unlock_cost=chapter.unlock_cost,
            is_unlocked=False if chapter.is_free else self.has_unlock(user_id, chapter.id),
        )
        decision = decide_access(ctx)
        access_checks_total.labels(access_type=decision.access_type).inc()
        logger.debug(
            "chapter_access_checked",
            extra={"user_id": user_id, "chapter_id": chapter.id, "access_type": decision.access_type},
        )
        return decision

    def has_unlock(self, user_id: str, chapter_id: str) -> bool:
        stmt = (
            select(ChapterUnlock.id)
            .where(ChapterUnlock.user_id == user_id, ChapterUnlock.chapter_id == chapter_id)
            .exists()
        )
        return bool(self.db.execute(select(stmt)).scalar())
