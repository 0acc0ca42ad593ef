"""Password hashing for local master-password checks and server account login."""

import base64
import binascii
import hmac
from typing import Union

from .kdf import KEY_SIZE, SALT_SIZE, argon2id, generate_salt


def hash_password(password: Union[str, bytes]) -> str:
    """Return base64(salt || Argon2id(password, salt)) with a fresh salt."""
    salt = generate_salt()
    digest = argon2id(password, salt)
    return base64.b64encode(salt + digest).decode("ascii")


def verify_password(password: Union[str, bytes], encoded: str) -> bool:
    """
    Recompute the hash with the embedded salt and compare in constant time.
    Malformed input returns False; this function never raises.
    """
    try:
        raw = base64.b64decode(encoded, validate=True)
    except (binascii.Error, TypeError, ValueError):
        return False
    if len(raw) < SALT_SIZE + KEY_SIZE:
        return False
    salt, stored = raw[:SALT_SIZE], raw[SALT_SIZE:]
    try:
        digest = argon2id(password, salt)
    except (TypeError, ValueError):
        return False
    return hmac.compare_digest(digest, stored)
