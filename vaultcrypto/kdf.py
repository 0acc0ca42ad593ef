"""
Master key derivation.

- Argon2id(password, salt) with fixed parameters: the same inputs must always
  give the same key, or every record encrypted under it becomes unreadable.
- Salt is 16 random bytes, persisted per username (not secret).
- Derived key is 32 bytes (AES-256) and lives only in client memory.
"""

import os
from typing import Union

from argon2.low_level import Type, hash_secret_raw

ARGON2_TIME_COST = 1
ARGON2_MEMORY_COST = 64 * 1024  # KiB
ARGON2_PARALLELISM = 4
KEY_SIZE = 32
SALT_SIZE = 16


def _to_bytes(password: Union[str, bytes]) -> bytes:
    if isinstance(password, str):
        return password.encode("utf-8")
    return bytes(password)


def generate_salt() -> bytes:
    """Generate a random 16-byte salt (not secret; stored next to the verification hash)."""
    return os.urandom(SALT_SIZE)


def argon2id(password: Union[str, bytes], salt: bytes) -> bytes:
    """Raw Argon2id output with the fixed vault parameters."""
    return hash_secret_raw(
        secret=_to_bytes(password),
        salt=salt,
        time_cost=ARGON2_TIME_COST,
        memory_cost=ARGON2_MEMORY_COST,
        parallelism=ARGON2_PARALLELISM,
        hash_len=KEY_SIZE,
        type=Type.ID,
    )


def derive_key(password: Union[str, bytes], salt: bytes) -> bytes:
    """
    Derive the 32-byte session encryption key from the master password.
    Deterministic: MasterKeyManager relies on this to reopen old records.
    """
    return argon2id(password, salt)
