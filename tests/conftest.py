"""Shared fixtures: isolated database, in-memory remote store, timestamps."""

import os
import sys
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Backend config is read at import time; point it at a throwaway database first
_DB_DIR = tempfile.mkdtemp(prefix="cipherkeep-test-")
os.environ.setdefault("CIPHERKEEP_DATABASE_URL", f"sqlite:///{Path(_DB_DIR) / 'test.db'}")
os.environ.setdefault("CIPHERKEEP_JWT_SECRET", "test-secret-with-enough-length-for-hs256")

from records import SecretKind, SecretRecord
from vaultsync import NotFound, ServerError

EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)


def ts(seconds: int) -> datetime:
    return EPOCH + timedelta(seconds=seconds)


def make_record(record_id: int, name: str = "item", updated: int = 0, owner_id: int = 1,
                kind: SecretKind = SecretKind.TEXT, ciphertext: bytes = b"\x00" * 40) -> SecretRecord:
    return SecretRecord(
        id=record_id,
        owner_id=owner_id,
        kind=kind,
        name=name,
        ciphertext=ciphertext,
        created_at=ts(0),
        updated_at=ts(updated),
    )


class InMemoryStore:
    """RemoteStore double: records by id, optional injected failures."""

    def __init__(self):
        self.records = {}
        self.fail_create_names = set()
        self.fail_update_ids = set()
        self.calls = []
        self._next_id = 1

    def seed(self, *records: SecretRecord) -> None:
        for r in records:
            self.records[r.id] = r.copy()
            self._next_id = max(self._next_id, r.id + 1)

    def create(self, record: SecretRecord) -> int:
        self.calls.append(("create", record.name))
        if record.name in self.fail_create_names:
            raise ServerError("create failed")
        record_id = self._next_id
        self._next_id += 1
        stored = record.without_plaintext()
        stored.id = record_id
        self.records[record_id] = stored
        return record_id

    def get_all(self, owner_id: int):
        self.calls.append(("get_all", owner_id))
        return [r.copy() for _, r in sorted(self.records.items()) if r.owner_id == owner_id]

    def get_by_id(self, record_id: int) -> SecretRecord:
        self.calls.append(("get_by_id", record_id))
        if record_id not in self.records:
            raise NotFound(f"Record {record_id} not found")
        return self.records[record_id].copy()

    def update(self, record: SecretRecord) -> None:
        self.calls.append(("update", record.id))
        if record.id in self.fail_update_ids:
            raise ServerError("update failed")
        if record.id not in self.records:
            raise NotFound(f"Record {record.id} not found")
        self.records[record.id] = record.without_plaintext()

    def delete(self, record_id: int) -> None:
        self.calls.append(("delete", record_id))
        if record_id not in self.records:
            raise NotFound(f"Record {record_id} not found")
        del self.records[record_id]

    # Account calls used by VaultClient.register/login
    def register(self, username: str, password: str):
        return 1, "token-" + username

    def login(self, username: str, password: str):
        return 1, "token-" + username


@pytest.fixture
def store():
    return InMemoryStore()
