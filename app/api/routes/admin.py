"""
Admin API: users and balances, series and chapters, image uploads.
Every route requires the X-Admin-Key header; actions that change money or prices are audited.
"""
import hmac
import os
from uuid import uuid4

from fastapi import APIRouter, Depends, File, Header, Query, UploadFile
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import Forbidden, ValidationError
from app.db.session import get_db
from app.schemas.admin import (
    ChapterCreate,
    ChapterOut,
    ChapterPricingUpdate,
    CreditOut,
    CreditRequest,
    ImageUploadOut,
    SeriesCreate,
    SeriesOut,
    UserCreate,
    UserOut,
)
from app.services.audit.service import AuditService
from app.services.chapters.service import ChapterService
from app.services.currency.service import CurrencyService
from app.services.users.service import UserService
from app.storage.base import Storage
from app.storage.local import get_storage
from app.utils.identifiers import parse_id


def require_admin_key(x_admin_key: str | None = Header(None)) -> str:
    expected = settings.admin_api_key
    if not expected or not x_admin_key or not hmac.compare_digest(x_admin_key, expected):
        raise Forbidden("Invalid admin key")
    return "admin"


router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_admin_key)])


# ---------- Users ----------
@router.post("/users", response_model=UserOut)
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    user = UserService(db).create_user(payload.username, payload.email, payload.email_verified)
    db.commit()
    return user


@router.post("/users/{user_id}/credit", response_model=CreditOut)
def credit_user(user_id: str, payload: CreditRequest, db: Session = Depends(get_db)):
    user = UserService(db).get_or_404(parse_id(user_id, "user id"))
    new_balance = CurrencyService(db).credit(
        user.id,
        payload.amount,
        tx_type=payload.type,
        description=payload.description or "Admin credit",
        reference_type="admin",
    )
    AuditService(db).log(
        "admin", None, "credit_balance", "user", user.id,
        {"amount": payload.amount, "type": payload.type, "new_balance": new_balance},
    )
    db.commit()
    return CreditOut(user_id=user.id, new_balance=new_balance)


# ---------- Catalog ----------
@router.post("/series", response_model=SeriesOut)
def create_series(payload: SeriesCreate, db: Session = Depends(get_db)):
    series = ChapterService(db).create_series(payload.title, payload.description, payload.slug)
    db.commit()
    return series


@router.post("/series/{series_id}/chapters", response_model=ChapterOut)
def create_chapter(series_id: str, payload: ChapterCreate, db: Session = Depends(get_db)):
    chapter = ChapterService(db).create_chapter(
        parse_id(series_id, "series id"),
        payload.number,
        title=payload.title,
        access_tier=payload.access_tier,
        unlock_cost=payload.unlock_cost,
        publish=payload.publish,
    )
    db.commit()
    return chapter


@router.post("/chapters/{chapter_id}/publish", response_model=ChapterOut)
def publish_chapter(chapter_id: str, db: Session = Depends(get_db)):
    chapter = ChapterService(db).publish(parse_id(chapter_id, "chapter id"))
    AuditService(db).log("admin", None, "publish_chapter", "chapter", chapter.id, {"unlock_cost": chapter.unlock_cost})
    db.commit()
    return chapter


@router.put("/chapters/{chapter_id}/unlock-cost", response_model=ChapterOut)
def update_chapter_pricing(chapter_id: str, payload: ChapterPricingUpdate, db: Session = Depends(get_db)):
    chapter = ChapterService(db).set_pricing(
        parse_id(chapter_id, "chapter id"), payload.access_tier, payload.unlock_cost
    )
    AuditService(db).log(
        "admin", None, "set_chapter_pricing", "chapter", chapter.id,
        {"access_tier": chapter.access_tier, "unlock_cost": chapter.unlock_cost},
    )
    db.commit()
    return chapter


# ---------- Images ----------
@router.post("/images/{folder}", response_model=ImageUploadOut)
def upload_image(
    folder: str,
    file: UploadFile = File(...),
    series_id: str | None = Query(None, description="Set as cover of this series (covers only)"),
    storage: Storage = Depends(get_storage),
    db: Session = Depends(get_db),
):
    if folder not in settings.upload_folders_set:
        raise ValidationError(f"Unknown image folder: {folder}")
    ext = os.path.splitext(file.filename or "")[1].lower()
    if ext not in settings.allowed_extensions_set:
        raise ValidationError(f"Unsupported image type: {ext or 'none'}")
    content = file.file.read()
    if not content:
        raise ValidationError("Empty file")
    if len(content) > settings.max_upload_size_mb * 1024 * 1024:
        raise ValidationError(f"File is larger than {settings.max_upload_size_mb} MB")

    chapters = ChapterService(db)
    series = None
    if series_id:
        if folder != "covers":
            raise ValidationError("Only covers can be attached to a series")
        series = chapters.get_series(parse_id(series_id, "series id"))

    key = storage.put(folder, f"{uuid4().hex}{ext}", content)
    if series is not None:
        try:
            chapters.set_cover(series.id, key)
            db.commit()
        except Exception:
            db.rollback()
            storage.delete(key)
            raise
    return ImageUploadOut(key=key, url=f"/api/images/{key}")
