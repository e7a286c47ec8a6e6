"""
Paywall DTOs: AccessContext (input of decide_access), AccessDecision, UnlockResult.
"""
from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

AccessType = Literal["free", "paid", "unlocked"]


# ----- Input of decide_access (one contract instead of loose arguments) -----


class AccessContext(BaseModel):
    """Everything decide_access needs: the chapter's tier and price, and whether the user holds an unlock."""

    user_id: str
    chapter_id: str
    access_tier: Literal["free", "paid"]
    unlock_cost: int = Field(0, ge=0)
    is_unlocked: bool = False  # True if a chapter_unlocks row exists for (user, chapter)

    model_config = ConfigDict(frozen=True)


# ----- Access decision (pure logic, no I/O) -----


class AccessDecision(BaseModel):
    """Serialized with camelCase keys: {hasAccess, accessType, unlockCost, alreadyUnlocked}."""

    has_access: bool = Field(..., alias="hasAccess")
    access_type: AccessType = Field(..., alias="accessType")
    unlock_cost: int = Field(..., alias="unlockCost")
    already_unlocked: bool = Field(..., alias="alreadyUnlocked")

    model_config = ConfigDict(frozen=True, populate_by_name=True)


# ----- Unlock outcome -----


class UnlockRecordOut(BaseModel):
    id: str
    user_id: str = Field(..., alias="userId")
    chapter_id: str = Field(..., alias="chapterId")
    cost_paid: int = Field(..., alias="costPaid")
    created_at: datetime = Field(..., alias="createdAt")

    model_config = ConfigDict(frozen=True, populate_by_name=True, from_attributes=True)


class UnlockResult(BaseModel):
    new_balance: int = Field(..., alias="newBalance")
    unlock_record: UnlockRecordOut = Field(..., alias="unlockRecord")

    model_config = ConfigDict(frozen=True, populate_by_name=True)
