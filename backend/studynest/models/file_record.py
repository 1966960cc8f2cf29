"""FileRecord model - an attachment of a page.

Bytes live either in ``file_data`` (base64, inline storage) or on disk at
``storage_path`` (relative to FILE_STORAGE_PATH). Linked to its page by name
only; page deletion cascades in application code.
"""
from datetime import datetime
from sqlalchemy import String, Text, BigInteger, DateTime, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column
from studynest.models.base import Base


class FileRecord(Base):
    __tablename__ = "files"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    page_name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    content_type: Mapped[str] = mapped_column(String(100), nullable=False)
    size_bytes: Mapped[int] = mapped_column(BigInteger, nullable=False)
    file_data: Mapped[str | None] = mapped_column(Text, nullable=True)
    storage_path: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("page_name", "name", name="uq_file_page_name"),
    )
    __mapper_args__ = {"eager_defaults": True}
