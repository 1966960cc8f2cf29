"""
Tests for password hashing and the verification strategies.
"""

import bcrypt
import pytest

from studynest.services.passwords import (
    ARGON2_MARKER,
    Argon2Strategy,
    BcryptStrategy,
    LegacyPlaintextStrategy,
    hash_password,
    needs_migration,
    strategy_for,
    verify_password,
)


def bcrypt_hash(password: str, prefix: bytes = b"2b") -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=4, prefix=prefix)).decode("ascii")


class TestArgon2:

    def test_hash_carries_format_marker(self):
        assert hash_password("hunter2").startswith(ARGON2_MARKER)

    def test_same_password_hashes_differently(self):
        assert hash_password("hunter2") != hash_password("hunter2")

    def test_original_password_verifies(self):
        stored = hash_password("correct horse")
        assert verify_password("correct horse", stored) is True

    @pytest.mark.parametrize("attempt", ["wrong", "correct hors", "correct horse ", "CORRECT HORSE"])
    def test_other_strings_rejected(self, attempt):
        stored = hash_password("correct horse")
        assert verify_password(attempt, stored) is False

    def test_hash_string_itself_does_not_verify(self):
        """The stored hash must not be accepted through the plaintext path."""
        stored = hash_password("correct horse")
        assert verify_password(stored, stored) is False

    def test_corrupted_hash_rejected_not_raised(self):
        assert verify_password("anything", "$argon2id$v=19$garbage") is False

    def test_empty_password_cannot_be_hashed(self):
        with pytest.raises(ValueError, match="Password cannot be empty"):
            hash_password("")


class TestBcrypt:

    @pytest.mark.parametrize("prefix", [b"2a", b"2b"])
    def test_original_password_verifies(self, prefix):
        assert verify_password("correct horse", bcrypt_hash("correct horse", prefix)) is True

    def test_wrong_password_rejected(self):
        assert verify_password("correct hors", bcrypt_hash("correct horse")) is False

    def test_hash_string_itself_does_not_verify(self):
        stored = bcrypt_hash("correct horse")
        assert verify_password(stored, stored) is False

    def test_corrupted_hash_rejected_not_raised(self):
        assert verify_password("anything", "$2b$10$garbage") is False


class TestLegacyPlaintext:

    def test_exact_match_verifies(self):
        assert verify_password("teacher123", "teacher123") is True

    @pytest.mark.parametrize("attempt", ["teacher12", "Teacher123", "teacher123 ", ""])
    def test_anything_else_rejected(self, attempt):
        assert verify_password(attempt, "teacher123") is False

    def test_empty_stored_value_rejected(self):
        assert verify_password("x", "") is False


class TestStrategySelection:

    def test_marker_selects_argon2(self):
        assert strategy_for(hash_password("pw")) is Argon2Strategy

    @pytest.mark.parametrize("stored", ["$2a$10$abc", "$2b$10$abc", "$2y$10$abc"])
    def test_bcrypt_markers_select_bcrypt(self, stored):
        assert strategy_for(stored) is BcryptStrategy

    def test_no_marker_selects_plaintext(self):
        assert strategy_for("pw") is LegacyPlaintextStrategy
        assert strategy_for("$2x-not-a-hash") is LegacyPlaintextStrategy

    def test_plaintext_needs_migration(self):
        assert needs_migration("pw") is True

    def test_bcrypt_needs_migration(self):
        assert needs_migration(bcrypt_hash("pw")) is True

    def test_fresh_hash_does_not_need_migration(self):
        assert needs_migration(hash_password("pw")) is False
