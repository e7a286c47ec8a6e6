"""
Reads that go stale after a successful unlock.

Query keys match the reader front-end cache keys; the unlock response lists them in
"invalidate" and app.client.ChapterAccessClient drops them from its own cache.
"""
from __future__ import annotations

QueryKey = tuple[str, ...]

BALANCE_QUERY_KEY: QueryKey = ("/api/currency/balance",)
TRANSACTIONS_QUERY_KEY: QueryKey = ("/api/currency/transactions",)


def chapter_access_query_key(chapter_id: str) -> QueryKey:
    return ("/api/chapters", chapter_id, "access")


def stale_queries_after_unlock(chapter_id: str) -> list[QueryKey]:
    return [
        chapter_access_query_key(chapter_id),
        BALANCE_QUERY_KEY,
        TRANSACTIONS_QUERY_KEY,
    ]


def matches(key: QueryKey, prefix: QueryKey) -> bool:
    """Prefix match: invalidating ("/api/currency/transactions",) also drops paginated variants."""
    return key[: len(prefix)] == prefix
