"""CareerPath model - a standalone PDF keyed by a unique label."""
from datetime import datetime
from sqlalchemy import String, Text, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column
from studynest.models.base import Base


class CareerPath(Base):
    __tablename__ = "career_paths"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    career_path: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    pdf_data: Mapped[str] = mapped_column(Text, nullable=False)
    content_type: Mapped[str] = mapped_column(String(100), nullable=False)
    uploaded_by: Mapped[str] = mapped_column(String(100), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __mapper_args__ = {"eager_defaults": True}
