"""
Vault client: unlock with the master password, encrypt on write, decrypt on
read, and reconcile queued changes with the server.

The server only ever receives ciphertext. Interactive operations surface
transport errors immediately; sync records them per record instead.
"""

import logging
from pathlib import Path
from typing import List, Optional, Union

from records import FileBlob, Payload, SecretRecord, utcnow
from vaultcrypto import MasterKeyManager, decrypt_payload, encrypt_payload, kind_of
from vaultsync import AccessDenied, NotFound, RemoteStore, SyncEngine, SyncResult, Unauthorized

from .config import CONFIG_DIR
from .session import Session, load_token, remove_token, save_token

logger = logging.getLogger(__name__)


class VaultClient:
    """Data owner: holds the session key; encrypts, stores, reveals, syncs."""

    def __init__(self, transport: RemoteStore, config_dir: Union[str, Path] = CONFIG_DIR):
        self._config_dir = Path(config_dir)
        self.session = Session(keys=MasterKeyManager(self._config_dir), transport=transport)

    @property
    def transport(self) -> RemoteStore:
        return self.session.transport

    @property
    def keys(self) -> MasterKeyManager:
        return self.session.keys

    # --- account ---

    def _bind(self, username: str, owner_id: int, token: str) -> None:
        s = self.session
        s.keys.bind(username)
        s.username = username
        s.owner_id = owner_id
        s.token = token
        if hasattr(s.transport, "set_token"):
            s.transport.set_token(token)
        s.keys.init_salt()
        save_token(self._config_dir, username, owner_id, token)

    def register(self, username: str, password: str) -> int:
        owner_id, token = self.transport.register(username, password)
        if token:
            self._bind(username, owner_id, token)
        logger.info("Registered %s (user_id=%d)", username, owner_id)
        return owner_id

    def login(self, username: str, password: str) -> int:
        owner_id, token = self.transport.login(username, password)
        self._bind(username, owner_id, token)
        logger.info("Logged in as %s", username)
        return owner_id

    def resume(self, username: str) -> bool:
        """Reuse a token saved by an earlier login. Returns False if none is stored."""
        saved = load_token(self._config_dir, username)
        if saved is None:
            return False
        owner_id, token = saved
        self._bind(username, owner_id, token)
        return True

    def logout(self) -> None:
        if self.session.username:
            remove_token(self._config_dir, self.session.username)
        if hasattr(self.transport, "set_token"):
            self.transport.set_token(None)
        self.session.clear()

    # --- master password ---

    def has_master_password(self) -> bool:
        return self.keys.has_master_password()

    def set_master_password(self, password: str) -> None:
        self.keys.set_master_password(password)

    def verify_master_password(self, password: str) -> bool:
        return self.keys.verify_master_password(password)

    def unlock(self, password: str) -> None:
        """Raises InvalidData on a wrong master password."""
        self.keys.unlock(password)

    def lock(self) -> None:
        self.keys.lock()
        self.session.forget_plaintext()

    def _require_auth(self) -> None:
        if not self.session.authenticated:
            raise Unauthorized("Not authenticated")

    def _seal(self, payload: Payload) -> bytes:
        return encrypt_payload(payload, self.keys.session_key)

    # --- interactive operations ---

    def save_secret(self, name: str, payload: Payload, metadata: str = "") -> SecretRecord:
        """Encrypt and create on the server right away."""
        self._require_auth()
        record = SecretRecord(
            id=0,
            owner_id=self.session.owner_id,
            kind=kind_of(payload),
            name=name,
            ciphertext=self._seal(payload),
            metadata=metadata,
        )
        record.id = self.transport.create(record)
        record.plaintext = payload
        self.session.cache.append(record)
        return record

    def update_secret(
        self,
        record_id: int,
        payload: Optional[Payload] = None,
        name: Optional[str] = None,
        metadata: Optional[str] = None,
    ) -> SecretRecord:
        self._require_auth()
        if record_id <= 0:
            raise ValueError("Only server records can be updated directly; use queue_update")
        record = self._cached_or_fetch(record_id).copy()
        if payload is not None:
            if kind_of(payload) != record.kind:
                raise ValueError(f"Cannot store {kind_of(payload).value} in a {record.kind.value} record")
            record.ciphertext = self._seal(payload)
            record.plaintext = payload
        if name is not None:
            record.name = name
        if metadata is not None:
            record.metadata = metadata
        record.touch()
        self.transport.update(record)
        self._put_cache(record)
        return record

    def delete_secret(self, record_id: int) -> None:
        self._require_auth()
        if record_id > 0:
            self.transport.delete(record_id)
        self.session.cache = [r for r in self.session.cache if r.id != record_id]
        self.session.pending = [r for r in self.session.pending if r.id != record_id]

    def refresh(self) -> List[SecretRecord]:
        """Reload the server list, keeping local-only records."""
        self._require_auth()
        records = self.transport.get_all(self.session.owner_id)
        local = [r for r in self.session.cache if r.id <= 0]
        self.session.replace_cache(records + local)
        return self.session.cache

    def list_secrets(self) -> List[SecretRecord]:
        return list(self.session.cache)

    def reveal(self, record_id: int) -> Payload:
        """
        Decrypt a record locally. A queued change is newer than the server
        copy and is read first; otherwise known ids fetch the server ciphertext.
        """
        key = self.keys.session_key
        queued = self.session.find_pending(record_id)
        if queued is not None:
            payload = decrypt_payload(queued.ciphertext, queued.kind, key)
            queued.plaintext = payload
            return payload
        if record_id > 0:
            self._require_auth()
            record = self.transport.get_by_id(record_id)
            if record.owner_id and record.owner_id != self.session.owner_id:
                raise AccessDenied(f"Record {record_id} belongs to another user")
        else:
            record = self._cached(record_id)
        payload = decrypt_payload(record.ciphertext, record.kind, key)
        record.plaintext = payload
        if record_id > 0:
            # Cache the copy that was decrypted so plaintext matches its ciphertext
            self._put_cache(record)
        return payload

    def export_file(self, record_id: int, path: Union[str, Path]) -> Path:
        payload = self.reveal(record_id)
        if not isinstance(payload, FileBlob):
            raise ValueError(f"Record {record_id} is not a file")
        target = Path(path)
        if target.is_dir():
            target = target / Path(payload.file_name).name
        target.write_bytes(payload.data)
        return target

    # --- offline queue and sync ---

    def queue_secret(self, name: str, payload: Payload, metadata: str = "", local_only: bool = False) -> SecretRecord:
        """
        Stage a new record for the next sync. local_only records get a
        negative id: sync passes them through and never sends them.
        """
        record = SecretRecord(
            id=self.session.allocate_local_id() if local_only else 0,
            owner_id=self.session.owner_id,
            kind=kind_of(payload),
            name=name,
            ciphertext=self._seal(payload),
            metadata=metadata,
        )
        record.plaintext = payload
        self.session.pending.append(record)
        self.session.cache.append(record)
        return record

    def queue_update(self, record_id: int, payload: Payload, name: Optional[str] = None) -> SecretRecord:
        if record_id == 0:
            raise ValueError("Queued new records have no id yet")
        record = self._cached(record_id).copy()
        if kind_of(payload) != record.kind:
            raise ValueError(f"Cannot store {kind_of(payload).value} in a {record.kind.value} record")
        record.ciphertext = self._seal(payload)
        record.plaintext = payload
        if name is not None:
            record.name = name
        record.touch(utcnow())
        self.session.pending = [r for r in self.session.pending if r.id != record_id]
        self.session.pending.append(record)
        self._put_cache(record)
        return record

    def sync(self) -> SyncResult:
        """
        Reconcile queued changes with the server snapshot. The cache is
        replaced by the merged list; failed and local-only records stay queued.
        """
        self._require_auth()
        result = SyncEngine(self.transport).sync(self.session.owner_id, self.session.pending)
        self.session.replace_cache(result.records)
        self.session.pending = [
            e.record for e in result.entries if e.failed or e.record.id < 0
        ]
        for entry in result.failures:
            logger.warning("Record %r not synced: %s", entry.record.name, entry.error)
            if entry.record not in self.session.cache:
                self.session.cache.append(entry.record)
        return result

    # --- helpers ---

    def _cached(self, record_id: int) -> SecretRecord:
        record = self.session.find(record_id)
        if record is None:
            raise NotFound(f"Record {record_id} not found")
        return record

    def _cached_or_fetch(self, record_id: int) -> SecretRecord:
        record = self.session.find(record_id)
        if record is None and record_id > 0:
            record = self.transport.get_by_id(record_id)
        if record is None:
            raise NotFound(f"Record {record_id} not found")
        return record

    def _put_cache(self, record: SecretRecord) -> None:
        for i, r in enumerate(self.session.cache):
            if r.id == record.id:
                self.session.cache[i] = record
                return
        self.session.cache.append(record)

