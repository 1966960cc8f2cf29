"""Blob storage abstraction. Inline base64 in the file record, or local disk.

The backend is chosen by ``FILE_STORAGE_TYPE``:

- ``inline``: bytes are base64 encoded into ``FileRecord.file_data``. Blob and
  metadata are one row, so there is nothing to clean up across stores.
- ``local``: bytes go to ``<FILE_STORAGE_PATH>/<page>/<uuid>_<name>`` and the
  record keeps the relative path. Blob and row are written separately, so the
  caller must delete the blob if the row write fails.
"""
import base64
import binascii
import logging
import os
import re
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

import aiofiles
import aiofiles.os

from studynest.config import Settings
from studynest.models.file_record import FileRecord

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def encoded_length(size: int) -> int:
    """Length of the base64 encoding of ``size`` raw bytes."""
    return 4 * ((size + 2) // 3)


def decode_payload(data: str, field: str = "fileData") -> bytes:
    """Strict base64 decode. Raises ValueError on malformed input."""
    try:
        return base64.b64decode(data, validate=True)
    except binascii.Error as e:
        raise ValueError(f"{field} is not valid base64: {e}") from e


def safe_segment(name: str) -> str:
    """Reduce an arbitrary name to a single, harmless path segment."""
    cleaned = _UNSAFE_CHARS.sub("_", name).strip("._")
    return cleaned or "_"


@dataclass
class StoredBlob:
    """What a put() hands back for the metadata record."""
    file_data: str | None = None
    storage_path: str | None = None


class BlobStore(ABC):
    """Raw byte storage addressed by (page name, file name)."""

    # True when bytes live outside the metadata row
    is_external: bool = False

    @abstractmethod
    async def put(self, page_name: str, file_name: str, data: bytes, content_type: str) -> StoredBlob:
        ...

    @abstractmethod
    async def get(self, record: FileRecord) -> tuple[bytes, str]:
        """Return (bytes, content_type). Raises FileNotFoundError if the blob is gone."""

    @abstractmethod
    async def delete(self, record: FileRecord) -> bool:
        """Delete the blob. Returns False if it was already absent."""

    async def exists(self, record: FileRecord) -> bool:
        return True

    async def discard(self, stored: StoredBlob) -> bool:
        """Undo a put() whose metadata row was never written."""
        return True

    async def remove_page(self, page_name: str) -> None:
        """Drop per-page storage once the page and its files are gone."""
        return None

    def iter_paths(self) -> list[str]:
        """Every blob held outside the metadata store."""
        return []

    async def delete_path(self, storage_path: str) -> bool:
        return False


class InlineBlobStore(BlobStore):
    """Bytes stored as base64 inside the file record itself."""

    is_external = False

    async def put(self, page_name: str, file_name: str, data: bytes, content_type: str) -> StoredBlob:
        return StoredBlob(file_data=base64.b64encode(data).decode("ascii"))

    async def get(self, record: FileRecord) -> tuple[bytes, str]:
        if record.file_data is None:
            raise FileNotFoundError(f"No inline data for {record.page_name}/{record.name}")
        return base64.b64decode(record.file_data), record.content_type

    async def delete(self, record: FileRecord) -> bool:
        # Removing the row removes the bytes
        return True

    async def exists(self, record: FileRecord) -> bool:
        return record.file_data is not None


class LocalBlobStore(BlobStore):
    """Bytes stored on the local filesystem, one directory per page."""

    is_external = True

    def __init__(self, root: str | Path):
        self.root = Path(root).resolve()
        self.root.mkdir(parents=True, exist_ok=True)

    def _resolve(self, storage_path: str) -> Path:
        path = (self.root / storage_path).resolve()
        if not path.is_relative_to(self.root):
            raise ValueError(f"Storage path escapes storage root: {storage_path}")
        return path

    async def put(self, page_name: str, file_name: str, data: bytes, content_type: str) -> StoredBlob:
        page_dir = self.root / safe_segment(page_name)
        # Concurrent first writers for a page may race here; exist_ok makes it benign
        await aiofiles.os.makedirs(page_dir, exist_ok=True)

        path = page_dir / f"{uuid.uuid4().hex}_{safe_segment(file_name)}"
        try:
            async with aiofiles.open(path, "wb") as f:
                await f.write(data)
        except OSError:
            path.unlink(missing_ok=True)
            raise
        return StoredBlob(storage_path=path.relative_to(self.root).as_posix())

    async def get(self, record: FileRecord) -> tuple[bytes, str]:
        if not record.storage_path:
            raise FileNotFoundError(f"No storage path for {record.page_name}/{record.name}")
        async with aiofiles.open(self._resolve(record.storage_path), "rb") as f:
            return await f.read(), record.content_type

    async def delete(self, record: FileRecord) -> bool:
        if not record.storage_path:
            return False
        return await self.delete_path(record.storage_path)

    async def delete_path(self, storage_path: str) -> bool:
        try:
            await aiofiles.os.remove(self._resolve(storage_path))
        except FileNotFoundError:
            return False
        return True

    async def exists(self, record: FileRecord) -> bool:
        if not record.storage_path:
            return False
        return await aiofiles.os.path.isfile(self._resolve(record.storage_path))

    async def discard(self, stored: StoredBlob) -> bool:
        if not stored.storage_path:
            return False
        return await self.delete_path(stored.storage_path)

    async def remove_page(self, page_name: str) -> None:
        """Remove a page directory once it is empty. Leaves non-empty ones alone."""
        page_dir = self.root / safe_segment(page_name)
        try:
            await aiofiles.os.rmdir(page_dir)
        except FileNotFoundError:
            return
        except OSError as e:
            # Other pages can sanitise to the same directory name
            logger.debug(f"Keeping page directory {page_dir}: {e}")

    def iter_paths(self) -> list[str]:
        """Stored blob paths relative to the root."""
        paths = []
        for dirpath, _dirnames, filenames in os.walk(self.root):
            for filename in filenames:
                full = Path(dirpath) / filename
                paths.append(full.relative_to(self.root).as_posix())
        return sorted(paths)


def get_blob_store(settings: Settings) -> BlobStore:
    """Build the backend selected by FILE_STORAGE_TYPE."""
    if settings.FILE_STORAGE_TYPE == "inline":
        return InlineBlobStore()
    if settings.FILE_STORAGE_TYPE == "local":
        return LocalBlobStore(settings.FILE_STORAGE_PATH)
    raise ValueError(f"Unknown storage type: {settings.FILE_STORAGE_TYPE}")
