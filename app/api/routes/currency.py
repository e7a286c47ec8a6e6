from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.models.user import User
from app.schemas.currency import BalanceOut, TransactionOut, TransactionSummaryOut
from app.services.auth.session import get_current_user
from app.services.currency.service import MAX_PAGE_SIZE, CurrencyService

router = APIRouter(prefix="/api/currency", tags=["currency"])


@router.get("/balance", response_model=BalanceOut)
def get_balance(
    response: Response,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> BalanceOut:
    response.headers["Cache-Control"] = "no-store"
    return BalanceOut(balance=CurrencyService(db).get_balance(user.id))


@router.get("/transactions", response_model=list[TransactionOut])
def list_transactions(
    response: Response,
    limit: int = Query(20, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    type: str | None = Query(None, description="unlock, credit, refund, bonus"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[TransactionOut]:
    """Ledger entries, newest first."""
    response.headers["Cache-Control"] = "no-store"
    entries = CurrencyService(db).list_transactions(user.id, limit=limit, offset=offset, tx_type=type)
    return [TransactionOut.model_validate(entry) for entry in entries]


@router.get("/transactions/summary", response_model=TransactionSummaryOut)
def transactions_summary(
    response: Response,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TransactionSummaryOut:
    response.headers["Cache-Control"] = "no-store"
    return TransactionSummaryOut(**CurrencyService(db).summary(user.id))
