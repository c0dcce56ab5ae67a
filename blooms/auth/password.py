"""
Password hashing and verification.

Uses bcrypt with automatic salting and a configurable work factor.
"""

import bcrypt

from blooms.core import config

# bcrypt ignores everything past the first 72 bytes of its input, so longer
# passwords are refused rather than silently truncated.
BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    encoded = password.encode("utf-8")
    if len(encoded) > BCRYPT_MAX_BYTES:
        raise ValueError(f"Password must be {BCRYPT_MAX_BYTES} bytes or fewer")
    return encoded


class PasswordHasher:
    def __init__(self, rounds: int | None = None):
        self.rounds = rounds or config.BCRYPT_ROUNDS

    def hash(self, password: str) -> str:
        """Hash a password with a fresh salt.

        Raises:
            ValueError: If the password is longer than 72 UTF-8 bytes.
        """
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(_password_bytes(password), salt).decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        """Constant-time comparison against a bcrypt hash."""
        try:
            return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))
        except (ValueError, TypeError, AttributeError):
            return False


def get_password_hasher() -> PasswordHasher:
    return PasswordHasher()
