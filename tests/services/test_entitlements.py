"""EntitlementService.check_access against a real database."""
from uuid import uuid4

import pytest

from app.core.errors import NotFound, ValidationError
from app.models.chapter_unlock import ChapterUnlock
from app.services.entitlements.service import EntitlementService


def test_free_chapter_is_accessible(db, make_user, make_chapter):
    user = make_user()
    chapter = make_chapter(access_tier="free")
    decision = EntitlementService(db).check_access(user.id, chapter.id)
    assert decision.has_access is True
    assert decision.access_type == "free"
    assert decision.unlock_cost == 0


def test_free_chapter_ignores_unlock_history(db, make_user, make_chapter):
    user = make_user()
    chapter = make_chapter(access_tier="free")
    db.add(ChapterUnlock(user_id=user.id, chapter_id=chapter.id, cost_paid=0))
    db.commit()

    decision = EntitlementService(db).check_access(user.id, chapter.id)
    assert decision.has_access is True
    assert decision.access_type == "free"
    assert decision.unlock_cost == 0
    assert decision.already_unlocked is False


def test_paid_chapter_denied_without_unlock(db, make_user, make_chapter):
    user = make_user(balance=1000)
    chapter = make_chapter(unlock_cost=45)
    decision = EntitlementService(db).check_access(user.id, chapter.id)
    assert decision.has_access is False
    assert decision.access_type == "paid"
    assert decision.unlock_cost == 45
    assert decision.already_unlocked is False


def test_unlock_of_another_user_does_not_count(db, make_user, make_chapter):
    owner = make_user()
    other = make_user()
    chapter = make_chapter()
    db.add(ChapterUnlock(user_id=owner.id, chapter_id=chapter.id, cost_paid=30))
    db.commit()

    service = EntitlementService(db)
    assert service.check_access(owner.id, chapter.id).access_type == "unlocked"
    assert service.check_access(other.id, chapter.id).access_type == "paid"


def test_check_access_is_read_only(db, make_user, make_chapter):
    user = make_user(balance=100)
    chapter = make_chapter()
    EntitlementService(db).check_access(user.id, chapter.id)
    assert db.query(ChapterUnlock).count() == 0
    assert user.currency_balance == 100


def test_unknown_and_draft_chapters_are_not_found(db, make_user, make_chapter):
    user = make_user()
    draft = make_chapter(published=False)
    service = EntitlementService(db)
    with pytest.raises(NotFound):
        service.check_access(user.id, str(uuid4()))
    with pytest.raises(NotFound):
        service.check_access(user.id, draft.id)


def test_malformed_chapter_id(db, make_user):
    with pytest.raises(ValidationError):
        EntitlementService(db).check_access(make_user().id, "chapter-1")
