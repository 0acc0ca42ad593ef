"""Crypto and decode failures. All are deterministic for the same inputs; never retry."""


class CryptoError(ValueError):
    """Base class for envelope, key and payload errors."""


class InvalidKeyLength(CryptoError):
    pass


class DataTooShort(CryptoError):
    pass


class InvalidData(CryptoError):
    """Authentication failed: wrong key, corrupted or tampered blob, or wrong master password."""


class DecodeFailure(CryptoError):
    """Decrypted bytes do not match the structure required by the record kind."""


class InvalidSaltLength(CryptoError):
    pass


class UsernameRequired(CryptoError):
    pass


class VaultLocked(CryptoError):
    pass
