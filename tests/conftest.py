"""
Shared fixtures. Environment defaults are set before any app import, since
app.core.config builds Settings at import time.
"""
import os
import tempfile
from datetime import datetime, timezone
from uuid import uuid4

_TMP = tempfile.mkdtemp(prefix="reader-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{os.path.join(_TMP, 'app.db')}")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")
os.environ.setdefault("CELERY_BROKER_URL", "memory://")
os.environ.setdefault("CELERY_RESULT_BACKEND", "cache+memory://")
os.environ.setdefault("SESSION_SECRET", "test-session-secret-0123456789")
os.environ.setdefault("ADMIN_API_KEY", "test-admin-key")
os.environ.setdefault("UPLOADS_BASE_DIR", os.path.join(_TMP, "uploads"))
os.environ.setdefault("SMTP_HOST", "")

import pytest
from sqlalchemy.orm import sessionmaker

import app.models  # noqa: F401
from app.db.base import Base
from app.db.session import create_db_engine
from app.models.chapter import Chapter
from app.models.series import Series
from app.models.user import User


@pytest.fixture
def engine(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def make_user(db):
    def _make_user(balance: int = 0, **kwargs) -> User:
        user = User(
            username=kwargs.pop("username", f"reader-{uuid4().hex[:8]}"),
            currency_balance=balance,
            **kwargs,
        )
        db.add(user)
        db.commit()
        return user

    return _make_user


@pytest.fixture
def series(db):
    series = Series(title="Moonlit Contract", slug=f"moonlit-contract-{uuid4().hex[:6]}")
    db.add(series)
    db.commit()
    return series


@pytest.fixture
def make_chapter(db, series):
    numbers = iter(range(1, 1000))

    def _make_chapter(access_tier: str = "paid", unlock_cost: int = 30, published: bool = True, **kwargs) -> Chapter:
        chapter = Chapter(
            series_id=series.id,
            number=kwargs.pop("number", next(numbers)),
            access_tier=access_tier,
            unlock_cost=0 if access_tier == "free" else unlock_cost,
            published_at=datetime.now(timezone.utc) if published else None,
            **kwargs,
        )
        db.add(chapter)
        db.commit()
        return chapter

    return _make_chapter
