"""
Last-writer-wins reconciliation of a client batch against the server snapshot.

For each client record, in input order:
- id < 0: passed through unchanged, no server call.
- id == 0: created; receives the server id.
- id > 0 and on the server: client wins only if strictly newer
  (updated_at), otherwise the server copy is kept (ties go to the server).
- id > 0 and not on the server: id reset to 0 and recreated.
Server records the batch does not reference are appended unchanged.

A failed create/update does not abort the batch: the record gets a FAILED
entry and is left out of the merged list.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional

from records import SecretRecord

from .transport import RemoteStore, TransportError

logger = logging.getLogger(__name__)


class SyncOutcome(str, Enum):
    PASSED_THROUGH = "passed_through"
    CREATED = "created"
    RECREATED = "recreated"
    CLIENT_WINS = "client_wins"
    SERVER_WINS = "server_wins"
    UNTOUCHED = "untouched"
    FAILED = "failed"


@dataclass
class SyncEntry:
    record: SecretRecord
    outcome: SyncOutcome
    error: Optional[Exception] = None

    @property
    def failed(self) -> bool:
        return self.outcome is SyncOutcome.FAILED


@dataclass
class SyncResult:
    entries: List[SyncEntry] = field(default_factory=list)

    @property
    def records(self) -> List[SecretRecord]:
        """Merged list; the caller replaces its cache with it."""
        return [e.record for e in self.entries if not e.failed]

    @property
    def failures(self) -> List[SyncEntry]:
        return [e for e in self.entries if e.failed]

    @property
    def ok(self) -> bool:
        return not self.failures

    def counts(self) -> Dict[str, int]:
        return dict(Counter(e.outcome.value for e in self.entries))


class SyncEngine:
    """Reconciles records through a RemoteStore. Never sees plaintext."""

    def __init__(self, store: RemoteStore):
        self._store = store

    def sync(self, owner_id: int, batch: Iterable[SecretRecord]) -> SyncResult:
        """Fetch the owner's snapshot and reconcile. A failed fetch propagates."""
        snapshot = self._store.get_all(owner_id)
        return self.reconcile(batch, snapshot)

    def reconcile(self, batch: Iterable[SecretRecord], snapshot: Iterable[SecretRecord]) -> SyncResult:
        batch = [r.without_plaintext() for r in batch]
        snapshot = list(snapshot)
        server_index = {s.id: s for s in snapshot}
        client_ids = {r.id for r in batch if r.id > 0}

        result = SyncResult()
        for record in batch:
            result.entries.append(self._process(record, server_index))
        for s in snapshot:
            if s.id not in client_ids:
                result.entries.append(SyncEntry(s, SyncOutcome.UNTOUCHED))

        if result.failures:
            logger.warning("Sync finished with %d failed record(s): %s", len(result.failures), result.counts())
        else:
            logger.info("Sync finished: %s", result.counts())
        return result

    def _process(self, record: SecretRecord, server_index: Dict[int, SecretRecord]) -> SyncEntry:
        if record.id < 0:
            return SyncEntry(record, SyncOutcome.PASSED_THROUGH)
        if record.id == 0:
            return self._create(record, SyncOutcome.CREATED)

        server = server_index.get(record.id)
        if server is None:
            return self._create(record, SyncOutcome.RECREATED)
        if record.updated_at > server.updated_at:
            return self._update(record)
        return SyncEntry(server, SyncOutcome.SERVER_WINS)

    def _create(self, record: SecretRecord, outcome: SyncOutcome) -> SyncEntry:
        created = record.copy()
        created.id = 0
        try:
            created.id = self._store.create(created)
        except TransportError as e:
            logger.error("Sync: create of %r (id=%d) failed: %s", record.name, record.id, e)
            return SyncEntry(record, SyncOutcome.FAILED, e)
        return SyncEntry(created, outcome)

    def _update(self, record: SecretRecord) -> SyncEntry:
        updated = record.copy()
        try:
            self._store.update(updated)
        except TransportError as e:
            logger.error("Sync: update of record %d failed: %s", record.id, e)
            return SyncEntry(record, SyncOutcome.FAILED, e)
        return SyncEntry(updated, SyncOutcome.CLIENT_WINS)
