"""
UnlockService: spend coins to turn a denied paid chapter into a permanent entitlement.

One transaction: chapter_unlocks row -> guarded debit -> ledger entry -> commit.
Any failure rolls back all three. The unique (user_id, chapter_id) constraint is the
arbiter for concurrent duplicates: the row is flushed before the debit, so the loser gets
AlreadyUnlocked without ever being charged.
"""
import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import AlreadyUnlocked, AppError, InternalError, ValidationError
from app.models.chapter_unlock import ChapterUnlock
from app.models.currency_transaction import TX_UNLOCK
from app.paywall.audit import record_unlock
from app.paywall.models import UnlockRecordOut, UnlockResult
from app.services.chapters.service import ChapterService
from app.services.currency.service import CurrencyService
from app.services.entitlements.service import EntitlementService
from app.utils.identifiers import parse_id
from app.utils.metrics import chapter_unlocks_total

logger = logging.getLogger(__name__)


class UnlockService:
    def __init__(self, db: Session):
        self.db = db
        self.chapters = ChapterService(db)
        self.currency = CurrencyService(db)
        self.entitlements = EntitlementService(db)

    def unlock(self, user_id: str, chapter_id: str) -> UnlockResult:
        try:
            result = self._unlock(user_id, chapter_id)
        except AppError as e:
            self.db.rollback()
            chapter_unlocks_total.labels(result=e.code).inc()
            logger.info(
                "chapter_unlock_rejected",
                extra={"user_id": user_id, "chapter_id": chapter_id, "code": e.code},
            )
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            chapter_unlocks_total.labels(result="error").inc()
            logger.exception(
                "chapter_unlock_failed",
                extra={"user_id": user_id, "chapter_id": chapter_id, "error": type(e).__name__},
            )
            raise InternalError("Failed to unlock chapter. Please try again.") from e
        chapter_unlocks_total.labels(result="success").inc()
        return result

    def _unlock(self, user_id: str, chapter_id: str) -> UnlockResult:
        chapter_id = parse_id(chapter_id, "chapter id")
        chapter = self.chapters.get_published_or_404(chapter_id)
        if chapter.is_free:
            raise ValidationError("This chapter is free to read")

        # Fast path for sequential repeats; concurrent repeats are caught by the unique constraint.
        if self.entitlements.has_unlock(user_id, chapter.id):
            raise AlreadyUnlocked()

        cost = chapter.unlock_cost
        record = ChapterUnlock(user_id=user_id, chapter_id=chapter.id, cost_paid=cost)
        self.db.add(record)
        try:
            self.db.flush()
        except IntegrityError as e:
            # Only a committed row for the same pair means a lost race; anything else is a broken reference
            self.db.rollback()
            if self.entitlements.has_unlock(user_id, chapter.id):
                raise AlreadyUnlocked() from None
            raise InternalError("Failed to unlock chapter. Please try again.") from e

        if cost > 0:
            new_balance = self.currency.debit(
                user_id,
                cost,
                tx_type=TX_UNLOCK,
                description=f"Unlocked chapter {chapter.number}",
                reference_type="chapter",
                reference_id=chapter.id,
            )
        else:
            new_balance = self.currency.get_balance(user_id)
        self.db.commit()

        record_unlock(
            user_id,
            chapter.id,
            unlock_cost=cost,
            new_balance=new_balance,
            series_id=chapter.series_id,
        )
        return UnlockResult(
            new_balance=new_balance,
            unlock_record=UnlockRecordOut.model_validate(record),
        )
