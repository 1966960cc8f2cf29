"""Registration and login routes."""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from studynest.config import Settings
from studynest.database import get_db
from studynest.deps import get_settings
from studynest.schemas.auth import LoginRequest, LoginResponse, RegisterRequest
from studynest.schemas.common import MessageResponse
from studynest.services import users
from studynest.services.access_gate import authenticate_admin

router = APIRouter(tags=["auth"])


@router.post("/register", response_model=MessageResponse, status_code=201)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Register a user. In admin mode the body must carry admin credentials."""
    if settings.REGISTRATION_MODE == "admin":
        await authenticate_admin(db, body.admin_username, body.admin_password)
    await users.register(
        db,
        body.username,
        body.password,
        body.role,
        body.rollno,
        allowed_roles=users.allowed_roles_for(settings.REGISTRATION_MODE),
    )
    return {"message": "User registered successfully"}


@router.post("/login", response_model=LoginResponse)
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db)):
    """Check credentials and report the user's role."""
    return await users.login(db, body.username, body.password)
