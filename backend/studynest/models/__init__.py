"""Import all models so SQLAlchemy metadata knows about them."""
from studynest.models.base import Base
from studynest.models.user import User, ROLES
from studynest.models.page import Page
from studynest.models.file_record import FileRecord
from studynest.models.career_path import CareerPath

__all__ = [
    "Base",
    "User", "ROLES", "Page", "FileRecord", "CareerPath",
]
