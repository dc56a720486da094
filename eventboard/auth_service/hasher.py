"""
Password hashing with Argon2.

Cost parameters come from the environment so deployments can tune them
(ARGON2_TIME_COST, ARGON2_MEMORY_COST, ARGON2_PARALLELISM).
"""

import os

from argon2 import PasswordHasher
from argon2.exceptions import HashingError, InvalidHashError, VerificationError
from dotenv import load_dotenv

load_dotenv()


class HashingFailure(Exception):
    """Argon2 could not produce a hash (internal error, never bad input)."""


def _build_hasher() -> PasswordHasher:
    defaults = PasswordHasher()
    return PasswordHasher(
        time_cost=int(os.getenv("ARGON2_TIME_COST", defaults.time_cost)),
        memory_cost=int(os.getenv("ARGON2_MEMORY_COST", defaults.memory_cost)),
        parallelism=int(os.getenv("ARGON2_PARALLELISM", defaults.parallelism)),
    )


ph = _build_hasher()


def hash_password(password: str) -> str:
    """
    Hash a plaintext password with a fresh random salt.

    Raises:
        HashingFailure: If argon2 fails internally.
    """
    try:
        return ph.hash(password)
    except HashingError as e:
        raise HashingFailure("Password hashing failed") from e


def verify_password(password: str, password_hash: str) -> bool:
    """
    Check a plaintext password against a stored hash.

    A mismatch or an unreadable hash is a plain False, not an error.
    """
    try:
        return ph.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False
