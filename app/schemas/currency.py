from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class BalanceOut(BaseModel):
    balance: int


class TransactionOut(BaseModel):
    id: str
    type: str
    amount: int
    balance_after: int = Field(..., alias="balanceAfter")
    description: str | None = None
    reference_type: str | None = Field(None, alias="referenceType")
    reference_id: str | None = Field(None, alias="referenceId")
    created_at: datetime = Field(..., alias="createdAt")

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


class TransactionSummaryOut(BaseModel):
    current_balance: int
    totals: dict[str, int]
    counts: dict[str, int]
