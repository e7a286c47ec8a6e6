from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, DateTime, String, Text

from app.db.base import Base


class Series(Base):
    """A manga work; chapters belong to exactly one series."""

    __tablename__ = "series"

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    title = Column(String, nullable=False)
    slug = Column(String, unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)
    cover_image_key = Column(String, nullable=True)  # storage key, e.g. covers/<file>
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
