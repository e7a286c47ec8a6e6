from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class UserCreate(BaseModel):
    username: str
    email: str | None = None
    email_verified: bool = False


class UserOut(BaseModel):
    id: str
    username: str
    email: str | None = None
    email_verified: bool
    currency_balance: int

    model_config = ConfigDict(from_attributes=True)


class CreditRequest(BaseModel):
    amount: int = Field(..., gt=0)
    type: str = "credit"  # credit, bonus, refund
    description: str | None = None


class CreditOut(BaseModel):
    user_id: str
    new_balance: int


class SeriesCreate(BaseModel):
    title: str
    slug: str | None = None
    description: str | None = None


class SeriesOut(BaseModel):
    id: str
    title: str
    slug: str
    description: str | None = None
    cover_image_key: str | None = None

    model_config = ConfigDict(from_attributes=True)


class ChapterCreate(BaseModel):
    number: int = Field(..., ge=1)
    title: str | None = None
    access_tier: str = "free"
    unlock_cost: int | None = Field(None, ge=0)
    publish: bool = False


class ChapterPricingUpdate(BaseModel):
    access_tier: str
    unlock_cost: int | None = Field(None, ge=0)


class ChapterOut(BaseModel):
    id: str
    series_id: str
    number: int
    title: str | None = None
    access_tier: str
    unlock_cost: int
    published_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class ImageUploadOut(BaseModel):
    key: str
    url: str
