"""
Unlock audit: record_unlock is called only after the unlock transaction committed.
"""
from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


def record_unlock(
    user_id: str,
    chapter_id: str,
    *,
    unlock_cost: int,
    new_balance: int,
    series_id: str | None = None,
) -> None:
    """Emit the analytics event for a successful unlock."""
    logger.info(
        "chapter_unlock",
        extra={
            "user_id": user_id,
            "chapter_id": chapter_id,
            "series_id": series_id,
            "unlock_cost": unlock_cost,
            "new_balance": new_balance,
        },
    )
