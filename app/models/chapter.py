from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint

from app.db.base import Base

ACCESS_TIER_FREE = "free"
ACCESS_TIER_PAID = "paid"
ACCESS_TIERS = (ACCESS_TIER_FREE, ACCESS_TIER_PAID)


class Chapter(Base):
    __tablename__ = "chapters"
    __table_args__ = (
        UniqueConstraint("series_id", "number", name="uq_chapters_series_number"),
        CheckConstraint("unlock_cost >= 0", name="ck_chapters_cost_non_negative"),
        CheckConstraint("access_tier IN ('free', 'paid')", name="ck_chapters_access_tier"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    series_id = Column(String, ForeignKey("series.id", ondelete="CASCADE"), nullable=False, index=True)
    number = Column(Integer, nullable=False)
    title = Column(String, nullable=True)
    access_tier = Column(String, nullable=False, default=ACCESS_TIER_FREE)
    # Frozen once published_at is set
    unlock_cost = Column(Integer, nullable=False, default=0)
    published_at = Column(DateTime(timezone=True), nullable=True)  # null = draft, invisible to readers
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    @property
    def is_free(self) -> bool:
        return self.access_tier == ACCESS_TIER_FREE

    @property
    def is_published(self) -> bool:
        return self.published_at is not None
