from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint

from app.db.base import Base


class ChapterUnlock(Base):
    """Permanent entitlement: user paid for a chapter. At most one row per (user, chapter)."""

    __tablename__ = "chapter_unlocks"
    __table_args__ = (UniqueConstraint("user_id", "chapter_id", name="uq_chapter_unlocks_user_chapter"),)

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    chapter_id = Column(String, ForeignKey("chapters.id", ondelete="CASCADE"), nullable=False, index=True)
    cost_paid = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
