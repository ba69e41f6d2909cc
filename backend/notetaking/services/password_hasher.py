"""
Password hashing with argon2id.

The encoded hash string carries algorithm, parameters and a random salt, so
verification needs nothing but the stored value. check_needs_rehash() lets
login upgrade old hashes transparently when the parameters below change.
"""

import secrets
from functools import lru_cache

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError
from argon2.low_level import Type

ph = PasswordHasher(time_cost=2, memory_cost=51200, parallelism=2, hash_len=32, salt_len=16, type=Type.ID)


def hash_password(password: str) -> str:
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """False on mismatch or on a stored value that is not an argon2 hash."""
    try:
        return ph.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def needs_rehash(password_hash: str) -> bool:
    try:
        return ph.check_needs_rehash(password_hash)
    except InvalidHashError:
        return True


@lru_cache(maxsize=1)
def dummy_password_hash() -> str:
    """
    A real argon2 hash of a random secret, verified against when the account
    does not exist so unknown and known emails cost the same to reject.
    """
    return ph.hash(secrets.token_urlsafe(32))
