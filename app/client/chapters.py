"""
HTTP client for the reader API, mirroring the reader front-end data hooks.

Reads go through a small query cache keyed like the front-end query keys. After a
successful unlock the chapter's access state, the balance and the transaction history
are dropped from the cache, so the next read refetches them.

Retry policy: only internal failures (5xx, transport errors) are retried, with
exponential backoff. 4xx answers are terminal and raised as the matching AppError.
"""
import logging
import time
from typing import Any, Callable

import httpx

from app.core.errors import AppError, Forbidden, InternalError, ValidationError, error_from_response
from app.paywall.invalidation import (
    BALANCE_QUERY_KEY,
    TRANSACTIONS_QUERY_KEY,
    QueryKey,
    chapter_access_query_key,
    matches,
    stale_queries_after_unlock,
)
from app.paywall.models import AccessDecision, UnlockResult

logger = logging.getLogger(__name__)

CSRF_HEADER = "X-CSRF-Token"


class QueryCache:
    def __init__(self) -> None:
        self._data: dict[QueryKey, Any] = {}

    def get(self, key: QueryKey) -> Any | None:
        return self._data.get(key)

    def set(self, key: QueryKey, value: Any) -> None:
        self._data[key] = value

    def invalidate(self, prefix: QueryKey) -> int:
        """Drop every entry whose key starts with prefix. Returns how many were dropped."""
        stale = [key for key in self._data if matches(key, prefix)]
        for key in stale:
            del self._data[key]
        return len(stale)

    def __contains__(self, key: QueryKey) -> bool:
        return key in self._data

    def keys(self) -> list[QueryKey]:
        return list(self._data)


class ChapterAccessClient:
    def __init__(
        self,
        base_url: str = "",
        http: httpx.Client | None = None,
        *,
        timeout: float = 10.0,
        max_attempts: int = 3,
        backoff_seconds: float = 0.5,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.http = http or httpx.Client(base_url=base_url, timeout=timeout)
        self.cache = QueryCache()
        self.max_attempts = max(1, max_attempts)
        self.backoff_seconds = backoff_seconds
        self._sleep = sleep
        self._csrf_token: str | None = None

    def close(self) -> None:
        self.http.close()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_chapter_access(self, chapter_id: str) -> AccessDecision:
        if not chapter_id:
            raise ValidationError("Chapter ID is required")
        return self._query(
            chapter_access_query_key(chapter_id),
            lambda: AccessDecision.model_validate(
                self._request("GET", f"/api/chapters/{chapter_id}/access", fallback="Failed to check chapter access")
            ),
        )

    def get_balance(self) -> int:
        return self._query(
            BALANCE_QUERY_KEY,
            lambda: self._request("GET", "/api/currency/balance", fallback="Failed to load balance")["balance"],
        )

    def get_transactions(self, limit: int = 20, offset: int = 0) -> list[dict]:
        return self._query(
            TRANSACTIONS_QUERY_KEY + (str(limit), str(offset)),
            lambda: self._request(
                "GET",
                "/api/currency/transactions",
                params={"limit": limit, "offset": offset},
                fallback="Failed to load transactions",
            ),
        )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def unlock_chapter(self, chapter_id: str) -> UnlockResult:
        if not chapter_id:
            raise ValidationError("Chapter ID is required")
        try:
            data = self._mutate("POST", f"/api/chapters/{chapter_id}/unlock", fallback="Failed to unlock chapter")
        except AppError as e:
            logger.info("chapter_unlock_failed", extra={"chapter_id": chapter_id, "code": e.code})
            raise
        for key in stale_queries_after_unlock(chapter_id):
            self.cache.invalidate(key)
        logger.info("chapter_unlocked", extra={"chapter_id": chapter_id, "new_balance": data.get("newBalance")})
        return UnlockResult.model_validate(data)

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _query(self, key: QueryKey, fetch: Callable[[], Any]) -> Any:
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        value = fetch()
        self.cache.set(key, value)
        return value

    def _mutate(self, method: str, url: str, *, fallback: str) -> Any:
        """CSRF-protected request; a rejected token is refreshed once."""
        if self._csrf_token is None:
            self._refresh_csrf_token()
        try:
            return self._request(method, url, fallback=fallback, headers={CSRF_HEADER: self._csrf_token})
        except Forbidden:
            self._refresh_csrf_token()
            return self._request(method, url, fallback=fallback, headers={CSRF_HEADER: self._csrf_token})

    def _refresh_csrf_token(self) -> None:
        self._csrf_token = self._request("GET", "/api/csrf-token", fallback="Failed to start a secure session")["csrfToken"]

    def _request(
        self,
        method: str,
        url: str,
        *,
        fallback: str,
        params: dict | None = None,
        headers: dict | None = None,
    ) -> Any:
        attempt = 0
        while True:
            attempt += 1
            try:
                response = self.http.request(method, url, params=params, headers=headers)
            except httpx.TransportError as e:
                error: AppError = InternalError(fallback)
                error.__cause__ = e
            else:
                if response.is_success:
                    return response.json()
                error = self._error_from(response, fallback)

            if not error.retryable or attempt >= self.max_attempts:
                raise error
            delay = self.backoff_seconds * (2 ** (attempt - 1))
            logger.warning(
                "api_request_retry",
                extra={"method": method, "path": url, "attempt": attempt, "code": error.code},
            )
            self._sleep(delay)

    @staticmethod
    def _error_from(response: httpx.Response, fallback: str) -> AppError:
        message, code = fallback, None
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            message = body.get("message") or fallback
            code = body.get("code")
        return error_from_response(response.status_code, message, code)
