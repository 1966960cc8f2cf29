"""Page model - a subject folder tagged by semester."""
from sqlalchemy import String, Integer
from sqlalchemy.orm import Mapped, mapped_column
from studynest.models.base import Base, TimestampMixin


class Page(Base, TimestampMixin):
    __tablename__ = "pages"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False, unique=True, index=True)
    semester: Mapped[int] = mapped_column(Integer, nullable=False)
