"""
VaultClient: encrypt on write, decrypt on read, offline queue and sync.
Most tests use the in-memory store; the last ones go through the real API.
"""

import uuid

import pytest
from fastapi.testclient import TestClient

from backend.app.main import app
from client import HttpRemoteStore, VaultClient
from client.session import load_token
from records import Card, Credential, FileBlob, SecretKind, TextNote
from vaultcrypto import InvalidData, VaultLocked, decrypt, decrypt_payload, encrypt_payload
from vaultsync import AccessDenied, NotFound, SyncOutcome, Unauthorized
from conftest import InMemoryStore, make_record, ts

MASTER = "correct horse battery staple"


@pytest.fixture
def vault(tmp_path, store):
    vc = VaultClient(store, config_dir=tmp_path)
    vc.register("alice", "account-pw")
    vc.set_master_password(MASTER)
    vc.unlock(MASTER)
    return vc


def test_save_and_reveal(vault, store):
    rec = vault.save_secret("github", Credential(login="alice", password="s3cret"))
    assert rec.id > 0
    assert rec.kind is SecretKind.CREDENTIAL
    stored = store.records[rec.id]
    assert b"s3cret" not in stored.ciphertext
    assert stored.plaintext is None
    assert vault.reveal(rec.id) == Credential(login="alice", password="s3cret")


def test_ciphertext_opens_with_session_key_only(vault, store):
    rec = vault.save_secret("n", TextNote(content="hello"))
    assert b"hello" in decrypt(store.records[rec.id].ciphertext, vault.keys.session_key)


def test_locked_vault_cannot_encrypt_or_reveal(vault):
    rec = vault.save_secret("n", TextNote(content="x"))
    vault.lock()
    assert rec.plaintext is None
    with pytest.raises(VaultLocked):
        vault.reveal(rec.id)
    with pytest.raises(VaultLocked):
        vault.save_secret("m", TextNote(content="y"))


def test_wrong_master_password(tmp_path, store):
    vc = VaultClient(store, config_dir=tmp_path)
    vc.register("bob", "account-pw")
    vc.set_master_password(MASTER)
    with pytest.raises(InvalidData):
        vc.unlock("guess")
    assert not vc.keys.is_unlocked()


def test_requires_login(tmp_path, store):
    vc = VaultClient(store, config_dir=tmp_path)
    with pytest.raises(Unauthorized):
        vc.refresh()


def test_reveal_foreign_record_is_denied(vault, store):
    store.seed(make_record(50, "theirs", owner_id=2))
    with pytest.raises(AccessDenied):
        vault.reveal(50)


def test_update_secret(vault, store):
    rec = vault.save_secret("card", Card(card_number="4111", card_holder="A", expiry_date="01/30", cvv="1"))
    new = Card(card_number="5500", card_holder="A", expiry_date="02/31", cvv="2")
    updated = vault.update_secret(rec.id, new, name="card2")
    assert updated.name == "card2"
    assert store.records[rec.id].name == "card2"
    assert vault.reveal(rec.id) == new


def test_update_rejects_kind_change_and_unknown_ids(vault):
    rec = vault.save_secret("n", TextNote(content="x"))
    with pytest.raises(ValueError):
        vault.update_secret(rec.id, Credential(login="a", password="b"))
    with pytest.raises(ValueError):
        vault.update_secret(0, TextNote(content="x"))
    with pytest.raises(NotFound):
        vault.update_secret(999, TextNote(content="x"))


def test_delete_and_refresh(vault, store):
    a = vault.save_secret("a", TextNote(content="1"))
    b = vault.save_secret("b", TextNote(content="2"))
    vault.delete_secret(a.id)
    assert a.id not in store.records
    assert [r.id for r in vault.refresh()] == [b.id]


def test_export_file(vault, tmp_path):
    rec = vault.save_secret("key", FileBlob(file_name="id_ed25519", data=b"\x00binary\xff"))
    out = vault.export_file(rec.id, tmp_path)
    assert out.name == "id_ed25519"
    assert out.read_bytes() == b"\x00binary\xff"
    note = vault.save_secret("n", TextNote(content="x"))
    with pytest.raises(ValueError):
        vault.export_file(note.id, tmp_path / "x")


def test_queued_records_sync(vault, store):
    queued = vault.queue_secret("offline", TextNote(content="later"))
    assert queued.id == 0
    assert store.records == {}

    result = vault.sync()
    assert result.ok
    assert vault.session.pending == []
    [rec] = vault.list_secrets()
    assert rec.id > 0 and rec.name == "offline"
    assert vault.reveal(rec.id) == TextNote(content="later")


def test_queue_update_wins_when_newer(vault, store):
    rec = vault.save_secret("n", TextNote(content="v1"))
    vault.queue_update(rec.id, TextNote(content="v2"))
    result = vault.sync()
    assert result.entries[0].outcome is SyncOutcome.CLIENT_WINS
    assert vault.reveal(rec.id) == TextNote(content="v2")


def test_local_only_records_stay_queued(vault, store):
    draft = vault.queue_secret("draft", TextNote(content="private"), local_only=True)
    assert draft.id < 0
    vault.sync()
    assert [r.id for r in vault.session.pending] == [draft.id]
    assert draft.id in [r.id for r in vault.list_secrets()]
    assert draft.id not in store.records
    assert vault.reveal(draft.id) == TextNote(content="private")


def test_failed_sync_record_stays_visible_and_queued(vault, store):
    store.fail_create_names.add("flaky")
    vault.queue_secret("flaky", TextNote(content="x"))
    result = vault.sync()
    assert not result.ok
    assert [r.name for r in vault.session.pending] == ["flaky"]
    assert "flaky" in [r.name for r in vault.list_secrets()]

    store.fail_create_names.clear()
    assert vault.sync().ok
    assert vault.session.pending == []
    assert [r.name for r in store.records.values()] == ["flaky"]


def test_sync_keeps_revealed_plaintext(vault):
    rec = vault.save_secret("n", TextNote(content="x"))
    vault.reveal(rec.id)
    vault.sync()
    assert vault.session.find(rec.id).plaintext == TextNote(content="x")


def test_server_win_drops_stale_plaintext(vault, store):
    rec = vault.save_secret("n", TextNote(content="v1"))
    vault.queue_update(rec.id, TextNote(content="local-v2"))
    newer = store.records[rec.id].copy()
    newer.ciphertext = encrypt_payload(TextNote(content="server-v3"), vault.keys.session_key)
    newer.updated_at = ts(10**9)
    store.records[rec.id] = newer

    result = vault.sync()
    assert result.entries[0].outcome is SyncOutcome.SERVER_WINS
    cached = vault.session.find(rec.id)
    assert cached.plaintext is None
    assert decrypt_payload(cached.ciphertext, cached.kind, vault.keys.session_key) == TextNote(content="server-v3")
    assert vault.reveal(rec.id) == TextNote(content="server-v3")
    assert vault.session.find(rec.id).plaintext == TextNote(content="server-v3")


def test_reveal_prefers_queued_update(vault, store):
    rec = vault.save_secret("n", TextNote(content="v1"))
    queued = vault.queue_update(rec.id, TextNote(content="v2"))
    assert vault.reveal(rec.id) == TextNote(content="v2")
    assert vault.session.pending == [queued]
    assert queued.plaintext == TextNote(content="v2")
    assert ("get_by_id", rec.id) not in store.calls


def test_reveal_refreshes_cache_with_server_copy(vault, store):
    rec = vault.save_secret("n", TextNote(content="v1"))
    changed = store.records[rec.id].copy()
    changed.ciphertext = encrypt_payload(TextNote(content="elsewhere"), vault.keys.session_key)
    store.records[rec.id] = changed
    assert vault.reveal(rec.id) == TextNote(content="elsewhere")
    cached = vault.session.find(rec.id)
    assert cached.ciphertext == changed.ciphertext
    assert cached.plaintext == TextNote(content="elsewhere")


def test_resume_and_logout(tmp_path, store):
    vc = VaultClient(store, config_dir=tmp_path)
    vc.register("carol", "account-pw")
    assert load_token(tmp_path, "carol") == (1, "token-carol")

    other = VaultClient(InMemoryStore(), config_dir=tmp_path)
    assert other.resume("carol")
    assert other.session.owner_id == 1
    assert not other.resume("nobody")

    other.logout()
    assert load_token(tmp_path, "carol") is None
    assert not other.session.authenticated


def test_end_to_end_over_http(tmp_path):
    http = TestClient(app)
    username = "e2e" + uuid.uuid4().hex[:10]

    writer = VaultClient(HttpRemoteStore(http=http), config_dir=tmp_path)
    writer.register(username, "account-pw")
    writer.set_master_password(MASTER)
    writer.unlock(MASTER)
    rec = writer.save_secret("bank", Credential(login="me", password="pin"))
    writer.queue_secret("queued", TextNote(content="q"))
    assert writer.sync().ok

    # Second device: same config dir (same salt), fresh login
    reader = VaultClient(HttpRemoteStore(http=TestClient(app)), config_dir=tmp_path)
    reader.login(username, "account-pw")
    reader.unlock(MASTER)
    names = sorted(r.name for r in reader.refresh())
    assert names == ["bank", "queued"]
    assert reader.reveal(rec.id) == Credential(login="me", password="pin")


def test_end_to_end_foreign_record(tmp_path):
    alice = VaultClient(HttpRemoteStore(http=TestClient(app)), config_dir=tmp_path / "a")
    alice.register("al" + uuid.uuid4().hex[:10], "account-pw")
    alice.set_master_password(MASTER)
    alice.unlock(MASTER)
    rec = alice.save_secret("mine", TextNote(content="x"))

    eve = VaultClient(HttpRemoteStore(http=TestClient(app)), config_dir=tmp_path / "e")
    eve.register("ev" + uuid.uuid4().hex[:10], "account-pw")
    eve.set_master_password(MASTER)
    eve.unlock(MASTER)
    with pytest.raises(AccessDenied):
        eve.reveal(rec.id)
