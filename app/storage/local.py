"""
Local filesystem storage for uploaded images.
Files live under settings.uploads_base_dir, one subdirectory per folder (covers, chapters).
"""
import logging
import os
from functools import lru_cache
from typing import BinaryIO

from app.core.config import settings
from app.core.errors import NotFound, StorageError, ValidationError
from app.storage.base import Storage
from app.utils.metrics import storage_operations_total

logger = logging.getLogger(__name__)


class LocalStorage(Storage):
    def __init__(self, base_dir: str, folders: set[str] | None = None) -> None:
        self.base_dir = os.path.abspath(base_dir)
        self.folders = set(folders) if folders else {"covers", "chapters"}
        self._ensure_dirs()

    def _ensure_dirs(self) -> None:
        for folder in sorted(self.folders):
            path = os.path.join(self.base_dir, folder)
            if not os.path.isdir(path):
                os.makedirs(path, exist_ok=True)
                logger.info("storage_dir_created", extra={"folder": folder, "key": path})

    def _path(self, key: str) -> str:
        """Absolute path for a key; keys that escape base_dir or name no known folder are rejected."""
        key = (key or "").strip().lstrip("/")
        folder, _, name = key.partition("/")
        if folder not in self.folders or not name:
            raise ValidationError(f"Invalid image key: {key}")
        path = os.path.abspath(os.path.join(self.base_dir, key))
        if os.path.commonpath([path, self.base_dir]) != self.base_dir:
            raise ValidationError(f"Invalid image key: {key}")
        rel = os.path.relpath(path, self.base_dir).split(os.sep)
        if len(rel) < 2 or rel[0] != folder:
            raise ValidationError(f"Invalid image key: {key}")
        return path

    def put(self, folder: str, filename: str, content: bytes) -> str:
        if "/" in filename or "\\" in filename or filename in ("", ".", ".."):
            raise ValidationError(f"Invalid filename: {filename}")
        key = f"{folder}/{filename}"
        path = self._path(key)
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, "wb") as f:
                f.write(content)
        except OSError as e:
            storage_operations_total.labels(operation="put", status="error").inc()
            logger.exception("storage_put_failed", extra={"key": key})
            raise StorageError("Failed to upload image") from e
        storage_operations_total.labels(operation="put", status="ok").inc()
        logger.info("storage_put", extra={"key": key, "amount": len(content)})
        return key

    def get(self, key: str) -> bytes:
        with self.open(key) as f:
            try:
                return f.read()
            except OSError as e:
                raise StorageError("Failed to retrieve image") from e

    def open(self, key: str) -> BinaryIO:
        path = self._path(key)
        if not os.path.isfile(path):
            storage_operations_total.labels(operation="get", status="not_found").inc()
            raise NotFound("Image not found")
        try:
            stream = open(path, "rb")
        except OSError as e:
            storage_operations_total.labels(operation="get", status="error").inc()
            logger.exception("storage_get_failed", extra={"key": key})
            raise StorageError("Failed to retrieve image") from e
        storage_operations_total.labels(operation="get", status="ok").inc()
        return stream

    def delete(self, key: str) -> bool:
        path = self._path(key)
        if not os.path.isfile(path):
            logger.info("storage_delete_missing", extra={"key": key})
            return False
        try:
            os.unlink(path)
        except OSError as e:
            storage_operations_total.labels(operation="delete", status="error").inc()
            logger.exception("storage_delete_failed", extra={"key": key})
            raise StorageError("Failed to delete image") from e
        storage_operations_total.labels(operation="delete", status="ok").inc()
        logger.info("storage_deleted", extra={"key": key})
        return True

    def list(self, prefix: str) -> list[str]:
        prefix = (prefix or "").strip("/")
        if prefix not in self.folders:
            raise ValidationError(f"Unknown image folder: {prefix}")
        dir_path = os.path.join(self.base_dir, prefix)
        if not os.path.isdir(dir_path):
            return []
        try:
            names = sorted(
                name for name in os.listdir(dir_path) if os.path.isfile(os.path.join(dir_path, name))
            )
        except OSError as e:
            logger.exception("storage_list_failed", extra={"folder": prefix})
            raise StorageError("Failed to list images") from e
        return [f"{prefix}/{name}" for name in names]


@lru_cache
def get_storage() -> Storage:
    return LocalStorage(settings.uploads_base_dir, settings.upload_folders_set)
