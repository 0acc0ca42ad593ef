"""Secret record data model and payload variants."""

from .payloads import (
    PAYLOAD_TYPES,
    Card,
    Credential,
    FileBlob,
    Payload,
    SecretKind,
    TextNote,
)
from .record import NAME_MAX_LENGTH, NAME_MIN_LENGTH, SecretRecord, as_utc, parse_timestamp, utcnow, validate_name

__all__ = [
    "PAYLOAD_TYPES",
    "Card",
    "Credential",
    "FileBlob",
    "Payload",
    "SecretKind",
    "TextNote",
    "NAME_MAX_LENGTH",
    "NAME_MIN_LENGTH",
    "SecretRecord",
    "as_utc",
    "parse_timestamp",
    "utcnow",
    "validate_name",
]
