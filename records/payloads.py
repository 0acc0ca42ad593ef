"""Decrypted payload variants. Exactly one variant per record, tagged by SecretKind."""

from dataclasses import dataclass
from enum import Enum
from typing import Union


class SecretKind(str, Enum):
    CREDENTIAL = "login_password"
    TEXT = "text_data"
    CARD = "card_data"
    FILE = "binary_data"


@dataclass(frozen=True)
class Credential:
    login: str
    password: str


@dataclass(frozen=True)
class TextNote:
    content: str


@dataclass(frozen=True)
class Card:
    card_number: str
    card_holder: str
    expiry_date: str
    cvv: str


@dataclass(frozen=True)
class FileBlob:
    file_name: str
    data: bytes


Payload = Union[Credential, TextNote, Card, FileBlob]

PAYLOAD_TYPES = {
    SecretKind.CREDENTIAL: Credential,
    SecretKind.TEXT: TextNote,
    SecretKind.CARD: Card,
    SecretKind.FILE: FileBlob,
}
