"""Explicit client session: everything a core call needs, owned by the caller."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from records import SecretRecord
from vaultcrypto import MasterKeyManager
from vaultsync import RemoteStore

TOKEN_SUFFIX = ".token"


@dataclass
class Session:
    keys: MasterKeyManager
    transport: RemoteStore
    username: Optional[str] = None
    owner_id: int = 0
    token: Optional[str] = None
    cache: List[SecretRecord] = field(default_factory=list)
    pending: List[SecretRecord] = field(default_factory=list)
    _next_local_id: int = -1

    @property
    def authenticated(self) -> bool:
        return bool(self.token)

    def find(self, record_id: int) -> Optional[SecretRecord]:
        for r in self.cache:
            if r.id == record_id:
                return r
        return None

    def find_pending(self, record_id: int) -> Optional[SecretRecord]:
        for r in self.pending:
            if r.id == record_id:
                return r
        return None

    def replace_cache(self, records: List[SecretRecord]) -> None:
        """
        Swap in the merged list. Revealed plaintext is carried over only where
        the ciphertext is unchanged; anything else must be decrypted again.
        """
        revealed: Dict[int, SecretRecord] = {r.id: r for r in self.cache if r.plaintext is not None}
        self.cache = list(records)
        for r in self.cache:
            old = revealed.get(r.id)
            if old is not None and r.plaintext is None and old.ciphertext == r.ciphertext:
                r.plaintext = old.plaintext

    def allocate_local_id(self) -> int:
        local_id = self._next_local_id
        self._next_local_id -= 1
        return local_id

    def forget_plaintext(self) -> None:
        for r in self.cache:
            r.plaintext = None
        for r in self.pending:
            r.plaintext = None

    def clear(self) -> None:
        """Logout: drop key material, token and cached records."""
        self.keys.lock()
        self.token = None
        self.owner_id = 0
        self.cache = []
        self.pending = []


def token_path(config_dir: Path, username: str) -> Path:
    return Path(config_dir) / (username + TOKEN_SUFFIX)


def save_token(config_dir: Path, username: str, owner_id: int, token: str) -> None:
    path = token_path(config_dir, username)
    path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        f.write(f"{owner_id}\n{token}\n")


def load_token(config_dir: Path, username: str) -> Optional[tuple]:
    """Return (owner_id, token) or None when no usable token file exists."""
    path = token_path(config_dir, username)
    if not path.exists():
        return None
    lines = path.read_text(encoding="utf-8").split()
    if len(lines) != 2 or not lines[0].isdigit():
        return None
    return int(lines[0]), lines[1]


def remove_token(config_dir: Path, username: str) -> None:
    path = token_path(config_dir, username)
    if path.exists():
        path.unlink()
