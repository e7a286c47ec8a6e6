from abc import ABC, abstractmethod
from typing import BinaryIO


class Storage(ABC):
    """Blob store for cover and chapter images. Keys look like "<folder>/<filename>"."""

    @abstractmethod
    def put(self, folder: str, filename: str, content: bytes) -> str:
        """Save content; returns the key."""
        raise NotImplementedError

    @abstractmethod
    def get(self, key: str) -> bytes:
        """Raises NotFound when the key does not exist."""
        raise NotImplementedError

    @abstractmethod
    def open(self, key: str) -> BinaryIO:
        """Readable binary stream; the caller closes it. Raises NotFound."""
        raise NotImplementedError

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Returns False if there was nothing to delete."""
        raise NotImplementedError

    @abstractmethod
    def list(self, prefix: str) -> list[str]:
        """Keys under a folder prefix, sorted. Raises ValidationError for an unknown folder."""
        raise NotImplementedError
