import logging
import re
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import NotFound, ValidationError
from app.models.chapter import ACCESS_TIER_FREE, ACCESS_TIER_PAID, ACCESS_TIERS, Chapter
from app.models.series import Series
from app.paywall.config import get_default_unlock_cost

logger = logging.getLogger(__name__)

_SLUG_RE = re.compile(r"[^a-z0-9]+")


def slugify(title: str) -> str:
    return _SLUG_RE.sub("-", title.lower()).strip("-")


class ChapterService:
    """Series and chapter catalog. Readers only ever see published chapters."""

    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Series
    # ------------------------------------------------------------------

    def create_series(self, title: str, description: str | None = None, slug: str | None = None) -> Series:
        title = (title or "").strip()
        if not title:
            raise ValidationError("Series title is required")
        slug = slugify(slug or title)
        if not slug:
            raise ValidationError("Series slug is empty")
        series = Series(title=title, slug=slug, description=description)
        self.db.add(series)
        try:
            self.db.flush()
        except IntegrityError:
            self.db.rollback()
            raise ValidationError(f"Series slug already exists: {slug}") from None
        return series

    def get_series(self, series_id: str) -> Series:
        series = self.db.query(Series).filter(Series.id == series_id).one_or_none()
        if series is None:
            raise NotFound("Series not found")
        return series

    def set_cover(self, series_id: str, cover_image_key: str) -> Series:
        series = self.get_series(series_id)
        series.cover_image_key = cover_image_key
        self.db.add(series)
        self.db.flush()
        return series

    # ------------------------------------------------------------------
    # Chapters
    # ------------------------------------------------------------------

    def create_chapter(
        self,
        series_id: str,
        number: int,
        title: str | None = None,
        access_tier: str = ACCESS_TIER_FREE,
        unlock_cost: int | None = None,
        publish: bool = False,
    ) -> Chapter:
        self.get_series(series_id)
        if number < 1:
            raise ValidationError("Chapter number must be positive")
        unlock_cost = self._validate_pricing(access_tier, unlock_cost)
        chapter = Chapter(
            series_id=series_id,
            number=number,
            title=title,
            access_tier=access_tier,
            unlock_cost=unlock_cost,
            published_at=datetime.now(timezone.utc) if publish else None,
        )
        self.db.add(chapter)
        try:
            self.db.flush()
        except IntegrityError:
            self.db.rollback()
            raise ValidationError(f"Chapter {number} already exists in this series") from None
        return chapter

    def get(self, chapter_id: str) -> Chapter | None:
        return self.db.query(Chapter).filter(Chapter.id == chapter_id).one_or_none()

    def get_published_or_404(self, chapter_id: str) -> Chapter:
        """Drafts are reported as missing to readers."""
        chapter = self.get(chapter_id)
        if chapter is None or not chapter.is_published:
            raise NotFound("Chapter not found")
        return chapter

    def get_or_404(self, chapter_id: str) -> Chapter:
        chapter = self.get(chapter_id)
        if chapter is None:
            raise NotFound("Chapter not found")
        return chapter

    def list_published(self, series_id: str) -> list[Chapter]:
        return (
            self.db.query(Chapter)
            .filter(Chapter.series_id == series_id, Chapter.published_at.isnot(None))
            .order_by(Chapter.number)
            .all()
        )

    def publish(self, chapter_id: str) -> Chapter:
        chapter = self.get_or_404(chapter_id)
        if chapter.is_published:
            return chapter
        chapter.published_at = datetime.now(timezone.utc)
        self.db.add(chapter)
        self.db.flush()
        logger.info("chapter_published", extra={"chapter_id": chapter.id, "series_id": chapter.series_id})
        return chapter

    def set_pricing(self, chapter_id: str, access_tier: str, unlock_cost: int | None) -> Chapter:
        """Price changes are only allowed on drafts; published prices are frozen."""
        chapter = self.get_or_404(chapter_id)
        if chapter.is_published:
            raise ValidationError("Unlock cost cannot change after the chapter is published")
        chapter.unlock_cost = self._validate_pricing(access_tier, unlock_cost)
        chapter.access_tier = access_tier
        self.db.add(chapter)
        self.db.flush()
        return chapter

    @staticmethod
    def _validate_pricing(access_tier: str, unlock_cost: int | None) -> int:
        if access_tier not in ACCESS_TIERS:
            raise ValidationError(f"Unknown access tier: {access_tier}")
        if access_tier == ACCESS_TIER_FREE:
            if unlock_cost:
                raise ValidationError("Free chapters cannot have an unlock cost")
            return 0
        if unlock_cost is None:
            unlock_cost = get_default_unlock_cost()
        if access_tier == ACCESS_TIER_PAID and unlock_cost < 1:
            raise ValidationError("Paid chapters must cost at least 1 coin")
        return unlock_cost
