"""
CurrencyService: per-user coin balance and its append-only ledger.

debit/credit only flush: they join the caller's transaction, so an unlock commits its
debit, unlock record and ledger entry together or not at all.
"""
import logging

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from app.core.errors import InsufficientBalance, NotFound, ValidationError
from app.models.currency_transaction import (
    TRANSACTION_TYPES,
    TX_CREDIT,
    TX_UNLOCK,
    CurrencyTransaction,
)
from app.models.user import User
from app.utils.metrics import balance_rejected_total, currency_operations_total

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


class CurrencyService:
    def __init__(self, db: Session):
        self.db = db

    def get_balance(self, user_id: str) -> int:
        balance = self.db.execute(
            select(User.currency_balance).where(User.id == user_id)
        ).scalar_one_or_none()
        if balance is None:
            raise NotFound("User not found")
        return balance

    def debit(
        self,
        user_id: str,
        amount: int,
        *,
        tx_type: str = TX_UNLOCK,
        description: str | None = None,
        reference_type: str | None = None,
        reference_id: str | None = None,
    ) -> int:
        """
        Guarded decrement: UPDATE ... WHERE balance >= amount. Returns the new balance.
        Raises InsufficientBalance when the predicate fails; nothing is written then.
        """
        if amount <= 0:
            raise ValidationError("Debit amount must be positive")
        result = self.db.execute(
            update(User)
            .where(User.id == user_id, User.currency_balance >= amount)
            .values(currency_balance=User.currency_balance - amount)
        )
        if result.rowcount == 0:
            balance = self.get_balance(user_id)  # NotFound for unknown users
            balance_rejected_total.inc()
            logger.info(
                "currency_debit_rejected",
                extra={"user_id": user_id, "amount": amount, "new_balance": balance},
            )
            raise InsufficientBalance(detail={"balance": balance, "required": amount})

        new_balance = self.get_balance(user_id)
        self._append(user_id, tx_type, -amount, new_balance, description, reference_type, reference_id)
        currency_operations_total.labels(operation="debit").inc()
        return new_balance

    def credit(
        self,
        user_id: str,
        amount: int,
        *,
        tx_type: str = TX_CREDIT,
        description: str | None = None,
        reference_type: str | None = None,
        reference_id: str | None = None,
    ) -> int:
        if amount <= 0:
            raise ValidationError("Credit amount must be positive")
        if tx_type not in TRANSACTION_TYPES or tx_type == TX_UNLOCK:
            raise ValidationError(f"Unsupported credit type: {tx_type}")
        result = self.db.execute(
            update(User)
            .where(User.id == user_id)
            .values(currency_balance=User.currency_balance + amount)
        )
        if result.rowcount == 0:
            raise NotFound("User not found")
        new_balance = self.get_balance(user_id)
        self._append(user_id, tx_type, amount, new_balance, description, reference_type, reference_id)
        currency_operations_total.labels(operation="credit").inc()
        return new_balance

    def list_transactions(
        self,
        user_id: str,
        limit: int = 20,
        offset: int = 0,
        tx_type: str | None = None,
    ) -> list[CurrencyTransaction]:
        if tx_type is not None and tx_type not in TRANSACTION_TYPES:
            raise ValidationError(f"Unknown transaction type: {tx_type}")
        limit = max(1, min(limit, MAX_PAGE_SIZE))
        offset = max(0, offset)
        query = self.db.query(CurrencyTransaction).filter(CurrencyTransaction.user_id == user_id)
        if tx_type:
            query = query.filter(CurrencyTransaction.type == tx_type)
        return (
            query.order_by(CurrencyTransaction.created_at.desc(), CurrencyTransaction.id.desc())
            .limit(limit)
            .offset(offset)
            .all()
        )

    def summary(self, user_id: str) -> dict:
        """Per-type totals (absolute amounts) and counts, plus the current balance."""
        rows = self.db.execute(
            select(
                CurrencyTransaction.type,
                func.count(CurrencyTransaction.id),
                func.coalesce(func.sum(func.abs(CurrencyTransaction.amount)), 0),
            )
            .where(CurrencyTransaction.user_id == user_id)
            .group_by(CurrencyTransaction.type)
        ).all()
        by_type = {tx_type: {"count": count, "total_amount": int(total)} for tx_type, count, total in rows}
        return {
            "current_balance": self.get_balance(user_id),
            "totals": {t: by_type.get(t, {}).get("total_amount", 0) for t in TRANSACTION_TYPES},
            "counts": {t: by_type.get(t, {}).get("count", 0) for t in TRANSACTION_TYPES},
        }

    def _append(
        self,
        user_id: str,
        tx_type: str,
        amount: int,
        balance_after: int,
        description: str | None,
        reference_type: str | None,
        reference_id: str | None,
    ) -> CurrencyTransaction:
        entry = CurrencyTransaction(
            user_id=user_id,
            type=tx_type,
            amount=amount,
            balance_after=balance_after,
            description=description,
            reference_type=reference_type,
            reference_id=reference_id,
        )
        self.db.add(entry)
        self.db.flush()
        return entry
