"""Feed body parsing into a tagged variant and a normalised content record."""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# Priority order for the field that identifies a piece of content.
IDENTIFIER_FIELDS = ("hash", "id", "timestamp", "ts")
TIMESTAMP_FIELDS = ("ts", "timestamp")
PREVIEW_CHARS = 400


class FeedBodyKind(str, Enum):
    """Shapes a feed response body can take."""

    RECORD = "record"
    SEQUENCE = "sequence"
    TEXT = "text"


@dataclass(frozen=True, slots=True)
class FeedBody:
    """Decoded response body.

    ``value`` is a mapping for RECORD, a list for SEQUENCE, and for TEXT either
    the raw string or whatever non-container JSON value the body decoded to.
    """

    kind: FeedBodyKind
    raw: str
    value: Any
    content: bytes | None = None

    @property
    def received(self) -> bytes | str:
        return self.content if self.content is not None else self.raw

    @property
    def record(self) -> dict[str, Any] | None:
        """Return the candidate record, if the body carries one."""

        if self.kind is FeedBodyKind.RECORD:
            return self.value
        if self.kind is FeedBodyKind.SEQUENCE and self.value and isinstance(self.value[0], dict):
            return self.value[0]
        return None


@dataclass(frozen=True, slots=True)
class ContentRecord:
    """Snapshot of the feed at fetch time.

    Exactly one of ``identifier`` and ``fingerprint`` is set.
    """

    identifier: str | None
    fingerprint: str | None
    raw_text: str | None = None
    author: str | None = None
    observed_at: str | None = None
    data: Any = field(default=None, repr=False)

    @property
    def key(self) -> str:
        return self.identifier if self.identifier is not None else self.fingerprint or ""


@dataclass(frozen=True, slots=True)
class ContentPreview:
    """Short description of the latest content for cycle reports."""

    hash: str | None
    author: str | None
    ts: str | None
    text_preview: str | None

    def as_dict(self) -> dict[str, str | None]:
        return {
            "hash": self.hash,
            "author": self.author,
            "ts": self.ts,
            "textPreview": self.text_preview,
        }


def compute_fingerprint(raw: bytes | str) -> str:
    """Return the SHA-256 hex digest of a raw response body."""

    if isinstance(raw, str):
        raw = raw.encode("utf-8")
    return hashlib.sha256(raw).hexdigest()


def parse_body(raw: str, content: bytes | None = None) -> FeedBody:
    """Classify a non-empty response body.

    ``content`` is the body as received; fingerprints are taken over it.
    """

    try:
        decoded = json.loads(raw)
    except ValueError:
        return FeedBody(FeedBodyKind.TEXT, raw, raw, content)
    if isinstance(decoded, dict):
        return FeedBody(FeedBodyKind.RECORD, raw, decoded, content)
    if isinstance(decoded, list):
        return FeedBody(FeedBodyKind.SEQUENCE, raw, decoded, content)
    return FeedBody(FeedBodyKind.TEXT, raw, decoded, content)


def extract_identifier(record: dict[str, Any]) -> str | None:
    """Return the first usable identifier field, honouring priority order."""

    for name in IDENTIFIER_FIELDS:
        if name not in record or record[name] is None:
            continue
        value = record[name]
        # bool is an int subclass but never an identifier
        if isinstance(value, bool) or not isinstance(value, (str, int, float)):
            return None
        text = str(value)
        return text or None
    return None


def _string_field(record: dict[str, Any], name: str) -> str | None:
    value = record.get(name)
    return value if isinstance(value, str) else None


def to_content_record(body: FeedBody) -> ContentRecord:
    """Normalise a parsed body into a ContentRecord."""

    record = body.record
    if record is None:
        return ContentRecord(
            identifier=None,
            fingerprint=compute_fingerprint(body.received),
            data=body.value,
        )
    identifier = extract_identifier(record)
    observed_at = next(
        (value for value in (_string_field(record, name) for name in TIMESTAMP_FIELDS) if value),
        None,
    )
    return ContentRecord(
        identifier=identifier,
        fingerprint=None if identifier else compute_fingerprint(body.received),
        raw_text=_string_field(record, "text"),
        author=_string_field(record, "author"),
        observed_at=observed_at,
        data=record,
    )


def summarize(record: ContentRecord) -> ContentPreview | None:
    """Build a preview of a record; opaque text content has none."""

    if not isinstance(record.data, dict):
        return None
    text = record.raw_text or ""
    preview = f"{text[:PREVIEW_CHARS]}…" if len(text) > PREVIEW_CHARS else text
    return ContentPreview(
        hash=_string_field(record.data, "hash"),
        author=record.author,
        ts=_string_field(record.data, "ts"),
        text_preview=preview or None,
    )


__all__ = [
    "ContentPreview",
    "ContentRecord",
    "FeedBody",
    "FeedBodyKind",
    "compute_fingerprint",
    "extract_identifier",
    "parse_body",
    "summarize",
    "to_content_record",
]
