"""Import every model so Base.metadata knows all tables (create_all, scripts/init_db.py)."""
from app.models.audit_log import AuditLog
from app.models.chapter import Chapter
from app.models.chapter_unlock import ChapterUnlock
from app.models.currency_transaction import CurrencyTransaction
from app.models.series import Series
from app.models.user import User

__all__ = [
    "AuditLog",
    "Chapter",
    "ChapterUnlock",
    "CurrencyTransaction",
    "Series",
    "User",
]
