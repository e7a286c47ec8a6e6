"""
Redis window rate limiter for unlock attempts (and client IP resolution for request logs).
"""
import logging

import redis
from starlette.requests import Request

from app.core.config import settings
from app.paywall.config import get_unlock_rate_limit

logger = logging.getLogger("auth")


def get_client_ip(request: Request) -> str:
    """Client IP (supports X-Forwarded-For from proxy)."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded and settings.app_env == "production":
        trusted = settings.trusted_proxy_ips_set
        if trusted and request.client and request.client.host in trusted:
            return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "127.0.0.1"


def check_unlock_rate_limit(user_id: str) -> bool:
    """
    Check if an unlock attempt is allowed. Returns True if allowed, False if rate limited.
    Increments counter on each call.
    """
    attempts, window_seconds = get_unlock_rate_limit()
    try:
        client = redis.Redis.from_url(settings.redis_url, decode_responses=True)
        key = f"unlock_attempts:{user_id}"
        current = client.incr(key)
        if current == 1:
            client.expire(key, window_seconds)
        if current > attempts:
            logger.warning("unlock_rate_limited", extra={"user_id": user_id, "attempt": current})
            return False
        return True
    except redis.RedisError as e:
        logger.warning("unlock_rate_limit_redis_error", extra={"error": str(e)})
        return True  # Fail open - the unlock transaction itself stays safe
