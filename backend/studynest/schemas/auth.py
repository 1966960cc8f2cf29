"""Registration and login schemas."""
from typing import Optional
from studynest.schemas.base import CamelModel


class RegisterRequest(CamelModel):
    username: Optional[str] = None
    password: Optional[str] = None
    role: Optional[str] = None
    rollno: Optional[str] = None
    # Only read when REGISTRATION_MODE is "admin"
    admin_username: Optional[str] = None
    admin_password: Optional[str] = None


class LoginRequest(CamelModel):
    username: Optional[str] = None
    password: Optional[str] = None


class LoginResponse(CamelModel):
    message: str
    role: str
    redirect: str
