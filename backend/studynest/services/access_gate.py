"""Identity resolution and role checks.

Every request re-resolves the caller from scratch; there are no sessions.
Identity comes from the ``x-username`` header, or from admin credentials in
the body for privileged registration.

Usage in routes:
    @router.post("/pages")
    async def create_page(user: User = Depends(require_teacher), ...):
        ...
"""
import logging

from fastapi import Depends, Header
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from studynest.database import get_db
from studynest.errors import Forbidden, Unauthenticated
from studynest.models.user import User
from studynest.services.passwords import verify_password

logger = logging.getLogger(__name__)


async def resolve_user(db: AsyncSession, username: str | None) -> User:
    """Load the user named by the caller. Raises Unauthenticated otherwise."""
    if not username:
        logger.info("Rejected request without x-username header")
        raise Unauthenticated("Username required in headers")
    result = await db.execute(select(User).where(User.username == username))
    user = result.scalar_one_or_none()
    if not user:
        logger.info(f"Rejected unknown user: {username}")
        raise Unauthenticated("User not found")
    return user


def ensure_role(user: User, *roles: str) -> None:
    if user.role not in roles:
        logger.info(f"User {user.username} ({user.role}) lacks role {'/'.join(roles)}")
        if roles == ("teacher",):
            raise Forbidden("Only teachers can perform this action")
        raise Forbidden(f"Requires role: {', '.join(roles)}")


def require_role(*roles: str):
    """Build a dependency that resolves the header identity and checks its role."""

    async def dependency(
        x_username: str | None = Header(default=None),
        db: AsyncSession = Depends(get_db),
    ) -> User:
        user = await resolve_user(db, x_username)
        ensure_role(user, *roles)
        return user

    return dependency


require_teacher = require_role("teacher")


async def authenticate_admin(db: AsyncSession, admin_username: str | None, admin_password: str | None) -> User:
    """Check an admin credential pair. Any mismatch is Forbidden."""
    if not admin_username or not admin_password:
        raise Forbidden("Access denied")
    result = await db.execute(select(User).where(User.username == admin_username))
    admin = result.scalar_one_or_none()
    if not admin or admin.role != "admin" or not verify_password(admin_password, admin.password):
        logger.warning(f"Rejected admin credentials for: {admin_username}")
        raise Forbidden("Access denied")
    return admin
