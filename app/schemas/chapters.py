from pydantic import BaseModel, ConfigDict, Field

from app.paywall.models import UnlockRecordOut


class UnlockResponse(BaseModel):
    new_balance: int = Field(..., alias="newBalance")
    unlock_record: UnlockRecordOut = Field(..., alias="unlockRecord")
    # Query keys the reader must refetch before trusting them again
    invalidate: list[list[str]]

    model_config = ConfigDict(populate_by_name=True)


class ErrorOut(BaseModel):
    message: str
    code: str


class CsrfTokenOut(BaseModel):
    csrf_token: str = Field(..., alias="csrfToken")

    model_config = ConfigDict(populate_by_name=True)
