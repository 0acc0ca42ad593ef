"""
Record envelope encryption.

- AES-256-GCM only; 96-bit random nonce per call (records are re-encrypted on
  every update, nonce reuse under one key is fatal for GCM).
- Blob layout: nonce (12) || ciphertext || tag (16).
- Any authentication failure surfaces as InvalidData; the cause is not revealed.
"""

from Crypto.Cipher import AES
from Crypto.Random import get_random_bytes

from .errors import DataTooShort, InvalidData, InvalidKeyLength
from .kdf import KEY_SIZE

GCM_NONCE_SIZE = 12
GCM_TAG_SIZE = 16


def _check_key(key: bytes) -> None:
    if key is None or len(key) != KEY_SIZE:
        raise InvalidKeyLength("Key must be 32 bytes")


def encrypt(plaintext: bytes, key: bytes) -> bytes:
    """Encrypt with a fresh nonce. Returns nonce || ciphertext || tag."""
    _check_key(key)
    nonce = get_random_bytes(GCM_NONCE_SIZE)
    cipher = AES.new(bytes(key), AES.MODE_GCM, nonce=nonce)
    ciphertext, tag = cipher.encrypt_and_digest(plaintext)
    return nonce + ciphertext + tag


def decrypt(blob: bytes, key: bytes) -> bytes:
    """Verify and decrypt nonce || ciphertext || tag."""
    _check_key(key)
    if blob is None or len(blob) < GCM_NONCE_SIZE:
        raise DataTooShort("Blob shorter than nonce")
    if len(blob) < GCM_NONCE_SIZE + GCM_TAG_SIZE:
        raise InvalidData("Invalid data")
    nonce = blob[:GCM_NONCE_SIZE]
    ciphertext, tag = blob[GCM_NONCE_SIZE:-GCM_TAG_SIZE], blob[-GCM_TAG_SIZE:]
    cipher = AES.new(bytes(key), AES.MODE_GCM, nonce=nonce)
    try:
        return cipher.decrypt_and_verify(ciphertext, tag)
    except ValueError:
        raise InvalidData("Invalid data") from None
