"""Career path PDFs: create once per label, list all."""
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from studynest.errors import Conflict, InvalidInput
from studynest.models.career_path import CareerPath
from studynest.models.user import User
from studynest.services.access_gate import ensure_role
from studynest.services.attachments import check_encoded_size
from studynest.services.blob_store import decode_payload
from studynest.services.locks import KeyedLocks

logger = logging.getLogger(__name__)


class CareerPathManager:

    def __init__(self, db: AsyncSession, max_encoded_bytes: int, locks: KeyedLocks):
        self.db = db
        self.max_encoded_bytes = max_encoded_bytes
        self.locks = locks

    async def create(
        self,
        career_path: str | None,
        pdf_data: str | None,
        content_type: str | None,
        requester: User,
    ) -> CareerPath:
        """Store a new career path PDF. An existing label is never replaced."""
        ensure_role(requester, "teacher")
        if not career_path or not pdf_data or not content_type:
            raise InvalidInput("Career path, PDF data, and content type are required")
        check_encoded_size(len(pdf_data), self.max_encoded_bytes, what="PDF")
        try:
            decode_payload(pdf_data, field="pdfData")
        except ValueError as e:
            raise InvalidInput(str(e)) from e

        async with self.locks.hold(("career_path", career_path)):
            result = await self.db.execute(
                select(CareerPath.id).where(CareerPath.career_path == career_path)
            )
            if result.scalar_one_or_none() is not None:
                logger.info(f"Career path already exists: {career_path}")
                raise Conflict("Career path already exists")

            record = CareerPath(
                career_path=career_path,
                pdf_data=pdf_data,
                content_type=content_type,
                uploaded_by=requester.username,
            )
            self.db.add(record)
            try:
                await self.db.commit()
            except IntegrityError as e:
                await self.db.rollback()
                raise Conflict("Career path already exists") from e

        logger.info(f"Career path PDF uploaded: {career_path} by {requester.username}")
        return record

    async def list(self) -> list[dict]:
        result = await self.db.execute(select(CareerPath).order_by(CareerPath.created_at, CareerPath.id))
        return [
            {
                "career_path": c.career_path,
                "pdf_data": c.pdf_data,
                "content_type": c.content_type,
            }
            for c in result.scalars().all()
        ]
