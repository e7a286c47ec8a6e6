"""UnlockService: debit, unlock record and ledger entry commit together or not at all."""
import threading
from unittest.mock import patch
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from app.core.errors import AlreadyUnlocked, InsufficientBalance, InternalError, NotFound, ValidationError
from app.models.chapter_unlock import ChapterUnlock
from app.models.currency_transaction import CurrencyTransaction
from app.models.user import User
from app.services.entitlements.service import EntitlementService
from app.services.unlocks.service import UnlockService


def _unlock_count(db, user_id):
    return db.query(ChapterUnlock).filter(ChapterUnlock.user_id == user_id).count()


def _ledger(db, user_id):
    return db.query(CurrencyTransaction).filter(CurrencyTransaction.user_id == user_id).all()


class TestUnlock:
    def test_unlock_debits_and_records(self, db, make_user, make_chapter):
        user = make_user(balance=100)
        chapter = make_chapter(unlock_cost=30)

        result = UnlockService(db).unlock(user.id, chapter.id)

        assert result.new_balance == 70
        assert result.unlock_record.chapter_id == chapter.id
        assert result.unlock_record.user_id == user.id
        assert result.unlock_record.cost_paid == 30
        db.expire_all()
        assert db.get(User, user.id).currency_balance == 70
        ledger = _ledger(db, user.id)
        assert len(ledger) == 1
        assert ledger[0].amount == -30
        assert ledger[0].type == "unlock"
        assert ledger[0].balance_after == 70
        assert ledger[0].reference_id == chapter.id

    def test_access_granted_after_unlock(self, db, make_user, make_chapter):
        user = make_user(balance=100)
        chapter = make_chapter(unlock_cost=30)
        assert EntitlementService(db).check_access(user.id, chapter.id).has_access is False

        UnlockService(db).unlock(user.id, chapter.id)

        decision = EntitlementService(db).check_access(user.id, chapter.id)
        assert decision.has_access is True
        assert decision.access_type == "unlocked"
        assert decision.already_unlocked is True

    def test_exact_balance_unlocks_to_zero(self, db, make_user, make_chapter):
        user = make_user(balance=30)
        chapter = make_chapter(unlock_cost=30)
        assert UnlockService(db).unlock(user.id, chapter.id).new_balance == 0

    def test_second_unlock_is_rejected_without_charge(self, db, make_user, make_chapter):
        user = make_user(balance=100)
        chapter = make_chapter(unlock_cost=30)
        UnlockService(db).unlock(user.id, chapter.id)

        with pytest.raises(AlreadyUnlocked):
            UnlockService(db).unlock(user.id, chapter.id)

        db.expire_all()
        assert db.get(User, user.id).currency_balance == 70
        assert len(_ledger(db, user.id)) == 1
        assert _unlock_count(db, user.id) == 1

    def test_insufficient_balance_changes_nothing(self, db, make_user, make_chapter):
        user = make_user(balance=5)
        chapter = make_chapter(unlock_cost=10)

        with pytest.raises(InsufficientBalance) as exc_info:
            UnlockService(db).unlock(user.id, chapter.id)

        assert exc_info.value.detail == {"balance": 5, "required": 10}
        db.expire_all()
        assert db.get(User, user.id).currency_balance == 5
        assert _ledger(db, user.id) == []
        assert _unlock_count(db, user.id) == 0
        assert EntitlementService(db).check_access(user.id, chapter.id).has_access is False

    def test_free_chapter_cannot_be_unlocked(self, db, make_user, make_chapter):
        user = make_user(balance=100)
        chapter = make_chapter(access_tier="free")
        with pytest.raises(ValidationError):
            UnlockService(db).unlock(user.id, chapter.id)
        db.expire_all()
        assert db.get(User, user.id).currency_balance == 100

    def test_unknown_chapter(self, db, make_user):
        user = make_user(balance=100)
        with pytest.raises(NotFound):
            UnlockService(db).unlock(user.id, str(uuid4()))

    def test_draft_chapter_is_not_found(self, db, make_user, make_chapter):
        user = make_user(balance=100)
        chapter = make_chapter(published=False)
        with pytest.raises(NotFound):
            UnlockService(db).unlock(user.id, chapter.id)

    def test_malformed_chapter_id(self, db, make_user):
        user = make_user(balance=100)
        with pytest.raises(ValidationError):
            UnlockService(db).unlock(user.id, "not-a-uuid")

    def test_zero_cost_paid_chapter_unlocks_without_ledger_entry(self, db, make_user, make_chapter):
        user = make_user(balance=10)
        chapter = make_chapter(unlock_cost=0)
        result = UnlockService(db).unlock(user.id, chapter.id)
        assert result.new_balance == 10
        assert _ledger(db, user.id) == []
        assert _unlock_count(db, user.id) == 1

    def test_session_usable_after_rejection(self, db, make_user, make_chapter):
        user = make_user(balance=5)
        expensive = make_chapter(unlock_cost=10)
        cheap = make_chapter(unlock_cost=5)
        service = UnlockService(db)
        with pytest.raises(InsufficientBalance):
            service.unlock(user.id, expensive.id)
        assert service.unlock(user.id, cheap.id).new_balance == 0


class TestUnlockConstraintFailures:
    def _integrity_error(self, reason):
        return IntegrityError("INSERT INTO chapter_unlocks", {}, Exception(reason))

    def test_lost_race_is_already_unlocked(self, db, make_user, make_chapter):
        user = make_user(balance=100)
        chapter = make_chapter(unlock_cost=30)
        service = UnlockService(db)
        with patch.object(service.entitlements, "has_unlock", side_effect=[False, True]), patch.object(
            db, "flush", side_effect=self._integrity_error("UNIQUE constraint failed")
        ):
            with pytest.raises(AlreadyUnlocked):
                service.unlock(user.id, chapter.id)

    def test_other_constraint_failure_is_internal(self, db, make_user, make_chapter):
        user = make_user(balance=100)
        chapter = make_chapter(unlock_cost=30)
        service = UnlockService(db)
        with patch.object(db, "flush", side_effect=self._integrity_error("FOREIGN KEY constraint failed")):
            with pytest.raises(InternalError):
                service.unlock(user.id, chapter.id)
        db.expire_all()
        assert db.get(User, user.id).currency_balance == 100
        assert _unlock_count(db, user.id) == 0


class TestConcurrentUnlock:
    def test_parallel_unlocks_debit_once(self, session_factory, make_user, make_chapter, db):
        user = make_user(balance=100)
        chapter = make_chapter(unlock_cost=30)
        attempts = 8
        barrier = threading.Barrier(attempts)
        outcomes: list[str] = []
        lock = threading.Lock()

        def worker():
            session = session_factory()
            try:
                barrier.wait()
                try:
                    UnlockService(session).unlock(user.id, chapter.id)
                    outcome = "ok"
                except AlreadyUnlocked:
                    outcome = "already_unlocked"
            finally:
                session.close()
            with lock:
                outcomes.append(outcome)

        threads = [threading.Thread(target=worker) for _ in range(attempts)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=60)

        assert outcomes.count("ok") == 1
        assert outcomes.count("already_unlocked") == attempts - 1
        db.expire_all()
        assert db.get(User, user.id).currency_balance == 70
        assert len(_ledger(db, user.id)) == 1
        assert _unlock_count(db, user.id) == 1

    def test_parallel_unlocks_of_different_chapters_never_overdraw(self, session_factory, make_user, make_chapter, db):
        user = make_user(balance=50)
        chapters = [make_chapter(unlock_cost=30) for _ in range(6)]
        barrier = threading.Barrier(len(chapters))
        outcomes: list[str] = []
        lock = threading.Lock()

        def worker(chapter_id):
            session = session_factory()
            try:
                barrier.wait()
                try:
                    UnlockService(session).unlock(user.id, chapter_id)
                    outcome = "ok"
                except InsufficientBalance:
                    outcome = "insufficient_balance"
            finally:
                session.close()
            with lock:
                outcomes.append(outcome)

        threads = [threading.Thread(target=worker, args=(c.id,)) for c in chapters]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=60)

        assert outcomes.count("ok") == 1
        assert outcomes.count("insufficient_balance") == len(chapters) - 1
        db.expire_all()
        assert db.get(User, user.id).currency_balance == 20
        assert len(_ledger(db, user.id)) == 1
        assert _unlock_count(db, user.id) == 1
