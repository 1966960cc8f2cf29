"""User model - accounts with a role."""
from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column
from studynest.models.base import Base, TimestampMixin

ROLES = ("student", "teacher", "admin")


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(100), nullable=False, unique=True, index=True)
    # argon2 hash, or plaintext for legacy records (no "$argon2" marker)
    password: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    rollno: Mapped[str] = mapped_column(String(50), nullable=False)
