"""Password hashing and verification.

Three stored formats are accepted, told apart by a format marker:

- Argon2id hashes, recognised by the ``$argon2`` prefix. All new records.
- bcrypt hashes (``$2a$``, ``$2b$``, ``$2y$``) written by the previous backend.
- Legacy plaintext, anything carrying no known hash marker. Compared by
  exact equality.

A successful login against a bcrypt or plaintext record rehashes it with
argon2 (see ``services.users.login``), so the old formats retire themselves
over time.
"""
import hmac
import logging

import bcrypt
from argon2 import PasswordHasher, Type
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

logger = logging.getLogger(__name__)

ARGON2_MARKER = "$argon2"
BCRYPT_MARKERS = ("$2a$", "$2b$", "$2y$")

_hasher = PasswordHasher(
    time_cost=3,
    memory_cost=65536,
    parallelism=4,
    hash_len=32,
    salt_len=16,
    type=Type.ID,
)


class Argon2Strategy:
    name = "argon2"

    @staticmethod
    def matches(stored: str) -> bool:
        return stored.startswith(ARGON2_MARKER)

    @staticmethod
    def verify(password: str, stored: str) -> bool:
        try:
            return _hasher.verify(stored, password)
        except VerifyMismatchError:
            return False
        except (VerificationError, InvalidHashError) as e:
            logger.warning(f"Unreadable argon2 hash: {e}")
            return False


class BcryptStrategy:
    name = "bcrypt"

    @staticmethod
    def matches(stored: str) -> bool:
        return stored.startswith(BCRYPT_MARKERS)

    @staticmethod
    def verify(password: str, stored: str) -> bool:
        try:
            return bcrypt.checkpw(password.encode("utf-8"), stored.encode("utf-8"))
        except ValueError as e:
            # Malformed salt, or a password over bcrypt's 72-byte limit
            logger.warning(f"Unreadable bcrypt hash or password: {e}")
            return False


class LegacyPlaintextStrategy:
    name = "plaintext"

    @staticmethod
    def matches(stored: str) -> bool:
        return not (Argon2Strategy.matches(stored) or BcryptStrategy.matches(stored))

    @staticmethod
    def verify(password: str, stored: str) -> bool:
        return hmac.compare_digest(password.encode("utf-8"), stored.encode("utf-8"))


STRATEGIES = (Argon2Strategy, BcryptStrategy, LegacyPlaintextStrategy)


def strategy_for(stored: str):
    """Pick the verification strategy from the stored value's format marker."""
    for strategy in STRATEGIES:
        if strategy.matches(stored):
            return strategy
    raise ValueError("No password strategy for stored value")


def hash_password(password: str) -> str:
    if not password:
        raise ValueError("Password cannot be empty")
    return _hasher.hash(password)


def verify_password(password: str, stored: str) -> bool:
    if not password or not stored:
        return False
    return strategy_for(stored).verify(password, stored)


def needs_migration(stored: str) -> bool:
    """True for non-argon2 records and for argon2 hashes with outdated parameters."""
    if strategy_for(stored) is not Argon2Strategy:
        return True
    return _hasher.check_needs_rehash(stored)
