from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from app.db.base import Base

TX_UNLOCK = "unlock"
TX_CREDIT = "credit"
TX_REFUND = "refund"
TX_BONUS = "bonus"
TRANSACTION_TYPES = (TX_UNLOCK, TX_CREDIT, TX_REFUND, TX_BONUS)


class CurrencyTransaction(Base):
    """Append-only ledger of balance changes. amount < 0 = debit."""

    __tablename__ = "currency_transactions"

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String, nullable=False)
    amount = Column(Integer, nullable=False)
    balance_after = Column(Integer, nullable=False)
    description = Column(String, nullable=True)
    reference_type = Column(String, nullable=True)  # chapter, admin, ...
    reference_id = Column(String, nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
