"""Registration, login and the bootstrap admin account."""
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from studynest.errors import Conflict, InvalidInput, Unauthenticated
from studynest.models.user import ROLES, User
from studynest.services.passwords import hash_password, needs_migration, strategy_for, verify_password

logger = logging.getLogger(__name__)

PUBLIC_ROLES = ("student", "teacher")

REDIRECTS = {
    "teacher": "../lecturer/home.html",
    "admin": "../admin/home.html",
    "student": "../student/home.html",
}


async def find_user(db: AsyncSession, username: str) -> User | None:
    result = await db.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


async def register(
    db: AsyncSession,
    username: str | None,
    password: str | None,
    role: str | None,
    rollno: str | None,
    allowed_roles: tuple[str, ...] = PUBLIC_ROLES,
) -> User:
    if not username or not password or not role or not rollno:
        raise InvalidInput("Username, password, role, and rollno are required")
    if role not in allowed_roles:
        quoted = " or ".join(f'"{r}"' for r in allowed_roles)
        raise InvalidInput(f"Role must be {quoted}")

    if await find_user(db, username):
        logger.info(f"User already exists: {username}")
        raise Conflict("Username already exists")

    user = User(username=username, password=hash_password(password), role=role, rollno=rollno)
    db.add(user)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise Conflict("Username already exists") from e
    logger.info(f"User registered: {username} ({role})")
    return user


async def login(db: AsyncSession, username: str | None, password: str | None) -> dict:
    """Verify credentials and return the role plus a client redirect hint.

    bcrypt and legacy plaintext records are rehashed on a successful login.
    """
    if not username or not password:
        raise InvalidInput("Username and password are required")

    user = await find_user(db, username)
    if not user or not verify_password(password, user.password):
        logger.info(f"Failed login for: {username}")
        raise Unauthenticated("Invalid username or password")

    if needs_migration(user.password):
        logger.info(f"Upgrading {strategy_for(user.password).name} password for: {username}")
        user.password = hash_password(password)
        await db.commit()

    logger.info(f"User logged in: {username}")
    return {
        "message": "Login successful",
        "role": user.role,
        "redirect": REDIRECTS.get(user.role, REDIRECTS["student"]),
    }


async def ensure_admin(db: AsyncSession, username: str, password: str, rollno: str) -> bool:
    """Insert the admin account if it is missing. Returns True when created.

    Idempotent: an existing user with that name is left untouched.
    """
    if not password:
        raise ValueError("Admin password cannot be empty")
    if await find_user(db, username):
        return False
    db.add(User(username=username, password=hash_password(password), role="admin", rollno=rollno))
    await db.commit()
    logger.info(f"Admin user created: {username}")
    return True


def allowed_roles_for(registration_mode: str) -> tuple[str, ...]:
    """Admin-gated registration may create any role; public only student/teacher."""
    if registration_mode == "admin":
        return ROLES
    return PUBLIC_ROLES
