"""
Master password and session key lifecycle.

- LOCKED: no session key in memory; nothing can be decrypted.
- UNLOCKED: key derived from the master password and the persisted salt,
  held in a mutable buffer and overwritten on lock.
- Per username two local files: the key-derivation salt (16 raw bytes) and
  the verification hash (base64 text), both owner-only.
- The same username must always use the same salt.
"""

import logging
import os
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from .errors import InvalidData, InvalidSaltLength, UsernameRequired, VaultLocked
from .kdf import SALT_SIZE, derive_key, generate_salt
from .passwords import hash_password, verify_password

logger = logging.getLogger(__name__)

SALT_SUFFIX = "_salt.key"
VERIFIER_SUFFIX = "_master.key"


class VaultState(str, Enum):
    LOCKED = "LOCKED"
    UNLOCKED = "UNLOCKED"


def _secure_zero(b: bytearray) -> None:
    """Overwrite buffer with zeros to reduce exposure of key material."""
    for i in range(len(b)):
        b[i] = 0


def _write_private(path: Path, data: bytes) -> None:
    path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "wb") as f:
        f.write(data)
    os.chmod(path, 0o600)


class MasterKeyManager:
    """
    Owns the salt and verification hash for one username and the derived
    session key. Keys are derived on unlock and cleared on lock.
    """

    def __init__(self, config_dir: Union[str, Path], username: Optional[str] = None):
        self._config_dir = Path(config_dir)
        self._username = username or None
        self._state = VaultState.LOCKED
        self._key_buf: Optional[bytearray] = None

    @property
    def username(self) -> Optional[str]:
        return self._username

    def bind(self, username: str) -> None:
        """Bind to a username. Switching users locks the current session."""
        if username != self._username:
            self.lock()
        self._username = username or None

    def _require_username(self) -> str:
        if not self._username:
            raise UsernameRequired("Username is not set")
        return self._username

    @property
    def salt_path(self) -> Path:
        return self._config_dir / (self._require_username() + SALT_SUFFIX)

    @property
    def verifier_path(self) -> Path:
        return self._config_dir / (self._require_username() + VERIFIER_SUFFIX)

    def init_salt(self) -> bytes:
        """
        Load the persisted salt or create one. Safe to call on every login.
        Raises InvalidSaltLength if the stored salt is not 16 bytes.
        """
        path = self.salt_path
        if path.exists():
            salt = path.read_bytes()
            if len(salt) != SALT_SIZE:
                raise InvalidSaltLength(f"Invalid salt size: {len(salt)}, expected: {SALT_SIZE}")
            return salt
        salt = generate_salt()
        _write_private(path, salt)
        logger.info("Created key-derivation salt for %s", self._username)
        return salt

    def has_master_password(self) -> bool:
        return self._username is not None and self.verifier_path.exists()

    def set_master_password(self, password: Union[str, bytes]) -> None:
        """
        Persist a fresh verification hash. The existing salt is kept, so
        records encrypted earlier stay readable only under the old password:
        nothing is re-encrypted here.
        """
        self._require_username()
        self.init_salt()
        _write_private(self.verifier_path, hash_password(password).encode("ascii"))
        logger.info("Master password set for %s", self._username)

    def verify_master_password(self, password: Union[str, bytes]) -> bool:
        if not self.has_master_password():
            return False
        encoded = self.verifier_path.read_bytes().decode("ascii", errors="replace").strip()
        return verify_password(password, encoded)

    def derive_session_key(self, password: Union[str, bytes]) -> bytes:
        """Derive the key from the persisted salt and cache it for the session."""
        salt = self.init_salt()
        key = derive_key(password, salt)
        self._store_key(key)
        return key

    def unlock(self, password: Union[str, bytes]) -> bytes:
        """Verify the master password, then derive the session key."""
        if not self.verify_master_password(password):
            raise InvalidData("Invalid master password")
        return self.derive_session_key(password)

    def _store_key(self, key: bytes) -> None:
        if self._key_buf is not None:
            _secure_zero(self._key_buf)
        self._key_buf = bytearray(key)
        self._state = VaultState.UNLOCKED

    def is_unlocked(self) -> bool:
        return self._state == VaultState.UNLOCKED and self._key_buf is not None

    def get_state(self) -> VaultState:
        return self._state

    @property
    def session_key(self) -> bytes:
        """Return the session key. Do not persist the returned value."""
        if not self.is_unlocked():
            raise VaultLocked("Vault is locked")
        return bytes(self._key_buf)

    def lock(self) -> None:
        """Clear key material from memory and set state to LOCKED."""
        if self._key_buf is not None:
            _secure_zero(self._key_buf)
            self._key_buf = None
        self._state = VaultState.LOCKED
