"""
Unit tests for decide_access: pure logic, no database.
"""
import unittest

from app.paywall.access import decide_access
from app.paywall.models import AccessContext


class TestDecideAccess(unittest.TestCase):
    """Free tier, unlocked and denied paid chapters."""

    def test_free_chapter_always_readable(self):
        ctx = AccessContext(user_id="u1", chapter_id="c1", access_tier="free", unlock_cost=0)
        decision = decide_access(ctx)
        self.assertTrue(decision.has_access)
        self.assertEqual(decision.access_type, "free")
        self.assertEqual(decision.unlock_cost, 0)
        self.assertFalse(decision.already_unlocked)

    def test_free_chapter_ignores_unlock_history(self):
        ctx = AccessContext(user_id="u1", chapter_id="c1", access_tier="free", is_unlocked=True)
        decision = decide_access(ctx)
        self.assertEqual(decision.access_type, "free")
        self.assertFalse(decision.already_unlocked)

    def test_paid_without_unlock_denied(self):
        ctx = AccessContext(user_id="u1", chapter_id="c1", access_tier="paid", unlock_cost=30)
        decision = decide_access(ctx)
        self.assertFalse(decision.has_access)
        self.assertEqual(decision.access_type, "paid")
        self.assertEqual(decision.unlock_cost, 30)
        self.assertFalse(decision.already_unlocked)

    def test_paid_with_unlock_readable(self):
        ctx = AccessContext(user_id="u1", chapter_id="c1", access_tier="paid", unlock_cost=30, is_unlocked=True)
        decision = decide_access(ctx)
        self.assertTrue(decision.has_access)
        self.assertEqual(decision.access_type, "unlocked")
        self.assertTrue(decision.already_unlocked)

    def test_decision_serializes_camel_case(self):
        ctx = AccessContext(user_id="u1", chapter_id="c1", access_tier="paid", unlock_cost=10)
        dumped = decide_access(ctx).model_dump(by_alias=True)
        self.assertEqual(
            dumped,
            {"hasAccess": False, "accessType": "paid", "unlockCost": 10, "alreadyUnlocked": False},
        )

    def test_context_rejects_negative_cost(self):
        with self.assertRaises(ValueError):
            AccessContext(user_id="u1", chapter_id="c1", access_tier="paid", unlock_cost=-1)
