"""
Typed payload <-> encrypted-at-rest bytes.

Payloads are serialized to canonical JSON and sealed with the envelope.
File bytes are base64-encoded inside the JSON so every kind shares one
text-safe structure. Decoding is strict: a payload is either fully built
or DecodeFailure is raised.
"""

import base64
import binascii
import json
from dataclasses import fields
from typing import Any, Dict

from records import PAYLOAD_TYPES, Card, Credential, FileBlob, Payload, SecretKind, TextNote

from .envelope import decrypt, encrypt
from .errors import DecodeFailure


def kind_of(payload: Payload) -> SecretKind:
    if isinstance(payload, Credential):
        return SecretKind.CREDENTIAL
    if isinstance(payload, TextNote):
        return SecretKind.TEXT
    if isinstance(payload, Card):
        return SecretKind.CARD
    if isinstance(payload, FileBlob):
        return SecretKind.FILE
    raise DecodeFailure(f"Unsupported payload type: {type(payload).__name__}")


def payload_to_dict(payload: Payload) -> Dict[str, str]:
    kind = kind_of(payload)
    if kind is SecretKind.FILE:
        return {
            "file_name": payload.file_name,
            "data": base64.b64encode(payload.data).decode("ascii"),
        }
    return {f.name: getattr(payload, f.name) for f in fields(PAYLOAD_TYPES[kind])}


def payload_from_dict(obj: Any, kind: SecretKind) -> Payload:
    try:
        kind = SecretKind(kind)
    except ValueError:
        raise DecodeFailure(f"Unknown data type: {kind!r}") from None
    if not isinstance(obj, dict):
        raise DecodeFailure("Payload must be a JSON object")
    cls = PAYLOAD_TYPES[kind]
    expected = {f.name for f in fields(cls)}
    if set(obj) != expected:
        raise DecodeFailure(f"Payload keys {sorted(obj)} do not match {kind.value}")
    if not all(isinstance(v, str) for v in obj.values()):
        raise DecodeFailure(f"Payload values for {kind.value} must be strings")
    if kind is SecretKind.FILE:
        try:
            data = base64.b64decode(obj["data"], validate=True)
        except (binascii.Error, ValueError):
            raise DecodeFailure("File data is not valid base64") from None
        return FileBlob(file_name=obj["file_name"], data=data)
    return cls(**obj)


def serialize_payload(payload: Payload) -> bytes:
    """Canonical JSON bytes: sorted keys, compact separators, UTF-8."""
    return json.dumps(
        payload_to_dict(payload), sort_keys=True, separators=(",", ":"), ensure_ascii=False
    ).encode("utf-8")


def deserialize_payload(raw: bytes, kind: SecretKind) -> Payload:
    try:
        obj = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        raise DecodeFailure("Payload is not valid JSON") from None
    return payload_from_dict(obj, kind)


def encrypt_payload(payload: Payload, key: bytes) -> bytes:
    return encrypt(serialize_payload(payload), key)


def decrypt_payload(ciphertext: bytes, kind: SecretKind, key: bytes) -> Payload:
    """Decrypt and decode by kind. Crypto errors propagate unchanged."""
    return deserialize_payload(decrypt(ciphertext, key), kind)
