"""
SecretRecord: the unit of storage and synchronization.

id == 0 means not yet assigned by the server, id > 0 is a known server
identity, id < 0 marks a client-local record that sync passes through
untouched. ciphertext is opaque outside vaultcrypto; plaintext is transient
and never serialized.
"""

import base64
import binascii
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .payloads import Payload, SecretKind

NAME_MIN_LENGTH = 1
NAME_MAX_LENGTH = 100


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC (SQLite drops tzinfo)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return as_utc(value)
    if not isinstance(value, str) or not value:
        raise ValueError(f"Invalid timestamp: {value!r}")
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return as_utc(datetime.fromisoformat(text))


def validate_name(name: str) -> str:
    if not isinstance(name, str) or not NAME_MIN_LENGTH <= len(name) <= NAME_MAX_LENGTH:
        raise ValueError(f"Name must be {NAME_MIN_LENGTH}-{NAME_MAX_LENGTH} characters")
    return name


@dataclass
class SecretRecord:
    id: int
    owner_id: int
    kind: SecretKind
    name: str
    ciphertext: bytes = b""
    metadata: str = ""
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    plaintext: Optional[Payload] = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        self.kind = SecretKind(self.kind)
        validate_name(self.name)
        self.created_at = as_utc(self.created_at)
        self.updated_at = as_utc(self.updated_at)

    @property
    def is_ephemeral(self) -> bool:
        return self.id < 0

    @property
    def is_new(self) -> bool:
        return self.id == 0

    @property
    def is_known(self) -> bool:
        return self.id > 0

    def touch(self, now: Optional[datetime] = None) -> None:
        """Advance updated_at; it never moves backwards."""
        now = as_utc(now) if now is not None else utcnow()
        if now > self.updated_at:
            self.updated_at = now

    def copy(self) -> "SecretRecord":
        return replace(self)

    def without_plaintext(self) -> "SecretRecord":
        return replace(self, plaintext=None)

    def to_wire(self) -> Dict[str, Any]:
        """JSON shape used on the wire. Plaintext is never included."""
        return {
            "id": self.id,
            "type": self.kind.value,
            "name": self.name,
            "encrypted_data": base64.b64encode(self.ciphertext).decode("ascii"),
            "metadata": self.metadata,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_wire(cls, data: Dict[str, Any], owner_id: int = 0) -> "SecretRecord":
        if not isinstance(data, dict):
            raise ValueError("Record must be a JSON object")
        try:
            raw = data.get("encrypted_data") or ""
            ciphertext = base64.b64decode(raw, validate=True)
            return cls(
                id=int(data.get("id") or 0),
                owner_id=int(data.get("user_id") or owner_id),
                kind=SecretKind(data["type"]),
                name=data["name"],
                ciphertext=ciphertext,
                metadata=data.get("metadata") or "",
                created_at=parse_timestamp(data["created_at"]) if data.get("created_at") else utcnow(),
                updated_at=parse_timestamp(data["updated_at"]) if data.get("updated_at") else utcnow(),
            )
        except (KeyError, TypeError, binascii.Error) as e:
            raise ValueError(f"Malformed record: {e!s}") from e
