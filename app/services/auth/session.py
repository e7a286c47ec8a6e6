"""
Reader sessions: signed cookie (fastapi-sessions) -> session id -> Redis -> user id.
Login itself lives elsewhere; this module only identifies the caller.
"""
import logging
from typing import Optional
from uuid import UUID, uuid4

import redis
from fastapi import Depends, Request, Response
from fastapi_sessions.backends.session_backend import SessionBackend
from fastapi_sessions.frontends.implementations import SessionCookie, CookieParameters
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import Forbidden, Unauthorized
from app.db.session import get_db
from app.models.user import User

logger = logging.getLogger("auth")


class ReaderSessionData(BaseModel):
    user_id: str


class RedisSessionBackend(SessionBackend[UUID, ReaderSessionData]):
    def __init__(self, client: redis.Redis | None = None) -> None:
        self.client = client or redis.Redis.from_url(settings.redis_url, decode_responses=True)
        self.ttl_seconds = settings.session_ttl
        self.key_prefix = "reader-session:"

    async def create(self, session_id: UUID, data: ReaderSessionData) -> None:
        self.client.setex(
            f"{self.key_prefix}{session_id}",
            self.ttl_seconds,
            data.model_dump_json(),
        )

    async def read(self, session_id: UUID) -> Optional[ReaderSessionData]:
        raw = self.client.get(f"{self.key_prefix}{session_id}")
        if not raw:
            return None
        return ReaderSessionData.model_validate_json(raw)

    async def update(self, session_id: UUID, data: ReaderSessionData) -> None:
        await self.create(session_id, data)

    async def delete(self, session_id: UUID) -> None:
        self.client.delete(f"{self.key_prefix}{session_id}")


session_backend = RedisSessionBackend()

cookie_params = CookieParameters(
    max_age=settings.session_ttl,
    samesite=settings.session_cookie_samesite,
    secure=settings.session_cookie_secure,
)

session_cookie = SessionCookie(
    cookie_name=settings.session_cookie_name,
    identifier="reader_session",
    auto_error=False,
    secret_key=settings.session_secret,
    cookie_params=cookie_params,
)


def get_session_id(request: Request) -> Optional[UUID]:
    # Missing or badly signed cookies come back as FrontendError, not an exception
    session_id = session_cookie(request)
    return session_id if isinstance(session_id, UUID) else None


async def create_reader_session(response: Response, user_id: str) -> UUID:
    """Start a session for an already authenticated user and attach the signed cookie."""
    session_id = uuid4()
    await session_backend.create(session_id, ReaderSessionData(user_id=user_id))
    session_cookie.attach_to_response(response, session_id)
    return session_id


async def end_reader_session(request: Request, response: Response) -> None:
    session_id = get_session_id(request)
    if session_id:
        await session_backend.delete(session_id)
    session_cookie.delete_from_response(response)


async def get_current_user_id(request: Request) -> str:
    session_id = get_session_id(request)
    if not session_id:
        raise Unauthorized()
    data = await session_backend.read(session_id)
    if data is None:
        raise Unauthorized("Your session has expired. Please log in again.")
    return data.user_id


async def get_current_user(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> User:
    user = db.query(User).filter(User.id == user_id).one_or_none()
    if user is None:
        raise Unauthorized()
    if user.is_access_blocked():
        logger.info("blocked_user_request", extra={"user_id": user.id})
        raise Forbidden("Your account is suspended")
    return user
