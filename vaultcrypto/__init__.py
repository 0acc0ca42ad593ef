"""Client-side crypto: key derivation, envelope encryption, password checks, payload codec."""

from .codec import decrypt_payload, encrypt_payload, kind_of
from .envelope import GCM_NONCE_SIZE, GCM_TAG_SIZE, decrypt, encrypt
from .errors import (
    CryptoError,
    DataTooShort,
    DecodeFailure,
    InvalidData,
    InvalidKeyLength,
    InvalidSaltLength,
    UsernameRequired,
    VaultLocked,
)
from .kdf import KEY_SIZE, SALT_SIZE, derive_key, generate_salt
from .master_key import MasterKeyManager, VaultState
from .passwords import hash_password, verify_password

__all__ = [
    "decrypt_payload",
    "encrypt_payload",
    "kind_of",
    "GCM_NONCE_SIZE",
    "GCM_TAG_SIZE",
    "decrypt",
    "encrypt",
    "CryptoError",
    "DataTooShort",
    "DecodeFailure",
    "InvalidData",
    "InvalidKeyLength",
    "InvalidSaltLength",
    "UsernameRequired",
    "VaultLocked",
    "KEY_SIZE",
    "SALT_SIZE",
    "derive_key",
    "generate_salt",
    "MasterKeyManager",
    "VaultState",
    "hash_password",
    "verify_password",
]
