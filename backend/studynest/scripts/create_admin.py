"""Create the admin account.

Usage:
    python -m studynest.scripts.create_admin <username> <password> [--rollno ROLLNO]

Reads DATABASE_URL from the environment or .env.backend, like the API.
Does nothing if a user with that name already exists.
"""
import argparse
import asyncio
import logging
import sys

from studynest.config import settings
from studynest.database import Database
from studynest.services.users import ensure_admin

logger = logging.getLogger(__name__)


async def create_admin(username: str, password: str, rollno: str) -> bool:
    db = Database(settings.DATABASE_URL)
    try:
        await db.create_all()
        async with db.session_factory() as session:
            return await ensure_admin(session, username, password, rollno)
    finally:
        await db.dispose()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create the StudyNest admin account.")
    parser.add_argument("username")
    parser.add_argument("password")
    parser.add_argument("--rollno", default="admin")
    args = parser.parse_args(argv)

    logging.basicConfig(level=settings.LOG_LEVEL, format="%(levelname)s %(message)s")
    created = asyncio.run(create_admin(args.username, args.password, args.rollno))
    if created:
        logger.info(f"Admin user created: {args.username}")
    else:
        logger.warning(f"User already exists: {args.username}")
    return 0 if created else 1


if __name__ == "__main__":
    sys.exit(main())
