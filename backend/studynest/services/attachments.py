"""Attachment lifecycle: upload, list, download and delete files of a page.

Keeps three things in agreement: the page's file records, each record's
bytes, and (disk backend) the files under FILE_STORAGE_PATH. None of the
multi-step sequences are transactional:

- upload writes the blob, then the row. A failed row write deletes the blob
  before the error is raised.
- delete_page removes the page row first, so readers see it gone at once,
  then reaps blobs and finally bulk-deletes the file rows. A crash in between
  leaves file rows without a page; list_files 404s on those and reconcile()
  removes them.
- upload and delete_page hold the page's lock, so an upload that passed its
  page check commits before the page's files are collected, never after.
"""
import asyncio
import logging
from urllib.parse import quote

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from studynest.errors import Conflict, InvalidInput, NotFound, PayloadTooLarge
from studynest.models.file_record import FileRecord
from studynest.models.page import Page
from studynest.models.user import User
from studynest.services.access_gate import ensure_role
from studynest.services.blob_store import BlobStore, decode_payload, encoded_length
from studynest.services.locks import KeyedLocks

logger = logging.getLogger(__name__)


def require_name(value: str | None, what: str = "Page name") -> str:
    if value is None or not value.strip():
        raise InvalidInput(f"{what} is required")
    return value


def check_encoded_size(size: int, limit: int, what: str = "File") -> None:
    if size > limit:
        raise PayloadTooLarge(f"{what} too large. Maximum size is {limit / (1024 * 1024):g}MB.")


class AttachmentManager:
    """Orchestrates file attachments across the metadata and blob stores."""

    def __init__(self, db: AsyncSession, blob_store: BlobStore, max_encoded_bytes: int, locks: KeyedLocks):
        self.db = db
        self.blob_store = blob_store
        self.max_encoded_bytes = max_encoded_bytes
        self.locks = locks

    async def _get_page(self, page_name: str) -> Page:
        result = await self.db.execute(select(Page).where(Page.name == page_name))
        page = result.scalar_one_or_none()
        if not page:
            logger.info(f"Page not found: {page_name}")
            raise NotFound("Page not found")
        return page

    async def _find_file(self, page_name: str, file_name: str) -> FileRecord | None:
        result = await self.db.execute(
            select(FileRecord).where(FileRecord.page_name == page_name, FileRecord.name == file_name)
        )
        return result.scalar_one_or_none()

    async def upload_file(
        self,
        page_name: str,
        file_name: str,
        data: str | bytes | None,
        content_type: str | None,
        requester: User,
    ) -> FileRecord:
        """Attach a file to an existing page.

        ``data`` is either base64 text (JSON uploads) or raw bytes (multipart).
        The size ceiling applies to the base64 length in both cases.
        """
        ensure_role(requester, "teacher")
        require_name(page_name)
        if not file_name or not data or not content_type:
            raise InvalidInput("File name, data, and content type are required")

        if isinstance(data, str):
            check_encoded_size(len(data), self.max_encoded_bytes)
            try:
                raw = decode_payload(data)
            except ValueError as e:
                raise InvalidInput(str(e)) from e
        else:
            check_encoded_size(encoded_length(len(data)), self.max_encoded_bytes)
            raw = data

        async with self.locks.hold(("page", page_name)), self.locks.hold(("file", page_name, file_name)):
            await self._get_page(page_name)
            if await self._find_file(page_name, file_name):
                logger.info(f"File already exists: {page_name}/{file_name}")
                raise Conflict("File with this name already exists")

            stored = await self.blob_store.put(page_name, file_name, raw, content_type)
            record = FileRecord(
                page_name=page_name,
                name=file_name,
                content_type=content_type,
                size_bytes=len(raw),
                file_data=stored.file_data,
                storage_path=stored.storage_path,
            )
            self.db.add(record)
            try:
                await self.db.commit()
            except Exception as e:
                await self.db.rollback()
                await self._discard(stored)
                if isinstance(e, IntegrityError):
                    raise Conflict("File with this name already exists") from e
                raise

        logger.info(f"File uploaded: {page_name}/{file_name} ({len(raw)} bytes) by {requester.username}")
        return record

    async def _discard(self, stored) -> None:
        try:
            removed = await self.blob_store.discard(stored)
        except OSError:
            logger.exception(f"Could not remove blob after failed metadata write: {stored.storage_path}")
            return
        if self.blob_store.is_external:
            logger.warning(f"Removed blob after failed metadata write: {stored.storage_path} (removed={removed})")

    async def list_files(self, page_name: str) -> list[dict]:
        """Describe every file of a page. Disk paths never leave this module."""
        require_name(page_name)
        await self._get_page(page_name)
        result = await self.db.execute(
            select(FileRecord)
            .where(FileRecord.page_name == page_name)
            .order_by(FileRecord.uploaded_at, FileRecord.id)
        )
        files = result.scalars().all()
        logger.debug(f"Fetched {len(files)} file(s) for page {page_name}")
        return [self._describe(f) for f in files]

    def _describe(self, record: FileRecord) -> dict:
        descriptor = {
            "name": record.name,
            "content_type": record.content_type,
            "size_bytes": record.size_bytes,
            "uploaded_at": record.uploaded_at,
        }
        if record.file_data is not None:
            descriptor["file_data"] = record.file_data
        else:
            descriptor["download_url"] = (
                f"/pages/{quote(record.page_name, safe='')}/files/{quote(record.name, safe='')}"
            )
        return descriptor

    async def get_file(self, page_name: str, file_name: str) -> tuple[bytes, str]:
        require_name(page_name)
        require_name(file_name, "File name")
        await self._get_page(page_name)
        record = await self._find_file(page_name, file_name)
        if not record:
            raise NotFound("File not found")
        try:
            return await self.blob_store.get(record)
        except FileNotFoundError as e:
            logger.warning(f"Blob missing for {page_name}/{file_name}: {e}")
            raise NotFound("File missing in storage") from e

    async def delete_file(self, page_name: str, file_name: str, requester: User) -> None:
        """Delete one attachment. The row goes first; a leftover blob is reconciled later."""
        ensure_role(requester, "teacher")
        require_name(page_name)
        require_name(file_name, "File name")
        async with self.locks.hold(("file", page_name, file_name)):
            record = await self._find_file(page_name, file_name)
            if not record:
                raise NotFound("File not found")
            await self.db.delete(record)
            await self.db.commit()
            await self._reap_blob(record)
        logger.info(f"File deleted: {page_name}/{file_name} by {requester.username}")

    async def _reap_blob(self, record: FileRecord) -> None:
        """Best-effort blob delete. Already-missing blobs are fine."""
        if not self.blob_store.is_external:
            return
        try:
            removed = await self.blob_store.delete(record)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not delete blob {record.storage_path}: {e}")
            return
        if not removed:
            logger.debug(f"Blob already gone: {record.storage_path}")

    async def delete_page(self, page_name: str, requester: User) -> int:
        """Delete a page and cascade to its files. Returns the number of files removed."""
        ensure_role(requester, "teacher")
        require_name(page_name)
        # Uploads hold the same key from their page check to their commit
        async with self.locks.hold(("page", page_name)):
            page = await self._get_page(page_name)
            await self.db.delete(page)
            await self.db.commit()

            result = await self.db.execute(select(FileRecord).where(FileRecord.page_name == page_name))
            files = result.scalars().all()
            for record in files:
                await self._reap_blob(record)

            await self.db.execute(delete(FileRecord).where(FileRecord.page_name == page_name))
            await self.db.commit()
            await self.blob_store.remove_page(page_name)

        logger.info(f"Page deleted: {page_name} ({len(files)} file(s)) by {requester.username}")
        return len(files)

    async def reconcile(self) -> dict:
        """Remove file rows without a page and disk blobs without a row.

        Only safe while no upload is in flight (an upload's blob exists briefly
        before its row), so it runs during startup.
        """
        result = await self.db.execute(
            select(FileRecord).where(FileRecord.page_name.not_in(select(Page.name)))
        )
        orphan_records = result.scalars().all()
        for record in orphan_records:
            await self._reap_blob(record)
        if orphan_records:
            await self.db.execute(
                delete(FileRecord).where(FileRecord.id.in_([r.id for r in orphan_records]))
            )
            await self.db.commit()
            for page_name in {r.page_name for r in orphan_records}:
                await self.blob_store.remove_page(page_name)

        orphan_blobs = 0
        if self.blob_store.is_external:
            result = await self.db.execute(
                select(FileRecord.storage_path).where(FileRecord.storage_path.is_not(None))
            )
            referenced = set(result.scalars().all())
            for path in await asyncio.to_thread(self.blob_store.iter_paths):
                if path not in referenced and await self.blob_store.delete_path(path):
                    orphan_blobs += 1

        if orphan_records or orphan_blobs:
            logger.warning(
                f"Reconciled {len(orphan_records)} orphaned file record(s) and {orphan_blobs} orphaned blob(s)"
            )
        return {"orphan_records": len(orphan_records), "orphan_blobs": orphan_blobs}
