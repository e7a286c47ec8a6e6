"""
Decision only: decide_access(ctx) -> AccessDecision.
Pure function, no I/O. Free tier -> free, unlock record -> unlocked, otherwise paid (denied).
"""
from __future__ import annotations

import logging

from app.paywall.models import AccessContext, AccessDecision

logger = logging.getLogger(__name__)


def decide_access(ctx: AccessContext) -> AccessDecision:
    """
    Decide whether the user may read the chapter.

    - free tier -> always readable, cost reported as 0 whatever the unlock history
    - paid tier with an unlock record -> readable, reported as already unlocked
    - paid tier without a record -> denied, the chapter's price is reported
    """
    if ctx.access_tier == "free":
        return AccessDecision(
            has_access=True,
            access_type="free",
            unlock_cost=0,
            already_unlocked=False,
        )

    if ctx.is_unlocked:
        return AccessDecision(
            has_access=True,
            access_type="unlocked",
            unlock_cost=ctx.unlock_cost,
            already_unlocked=True,
        )

    return AccessDecision(
        has_access=False,
        access_type="paid",
        unlock_cost=ctx.unlock_cost,
        already_unlocked=False,
    )
