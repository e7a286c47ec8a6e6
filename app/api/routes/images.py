import mimetypes

from fastapi import APIRouter, Depends, Response

from app.storage.base import Storage
from app.storage.local import get_storage

router = APIRouter(prefix="/api/images", tags=["images"])


@router.get("/{folder}/{filename}")
def get_image(folder: str, filename: str, storage: Storage = Depends(get_storage)) -> Response:
    """Serve a cover or chapter image from storage."""
    key = f"{folder}/{filename}"
    content = storage.get(key)
    media_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"
    return Response(
        content=content,
        media_type=media_type,
        headers={"Cache-Control": "public, max-age=86400"},
    )
