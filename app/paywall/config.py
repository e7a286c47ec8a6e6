"""
Paywall config: typed wrapper over app.core.config for prices and unlock rate limits.
"""
from __future__ import annotations

from app.core.config import settings


def get_default_unlock_cost() -> int:
    return getattr(settings, "default_unlock_cost", 30)


def get_unlock_rate_limit() -> tuple[int, int]:
    """(attempts, window_seconds)"""
    return (
        getattr(settings, "unlock_rate_limit_attempts", 10),
        getattr(settings, "unlock_rate_limit_window_seconds", 60),
    )
