"""
Chapter paywall (internal library).
Decision (access) and bookkeeping (audit, invalidation) are separate; contract through AccessContext.
"""
from app.paywall.access import decide_access
from app.paywall.audit import record_unlock
from app.paywall.invalidation import stale_queries_after_unlock
from app.paywall.models import (
    AccessContext,
    AccessDecision,
    UnlockRecordOut,
    UnlockResult,
)

__all__ = [
    "AccessContext",
    "AccessDecision",
    "UnlockRecordOut",
    "UnlockResult",
    "decide_access",
    "record_unlock",
    "stale_queries_after_unlock",
]
