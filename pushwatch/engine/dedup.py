"""Change detection against the persisted last-seen marker."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from ..errors import StoreError
from ..infra.storage import JsonDocumentManager
from .parser import ContentRecord


@dataclass(frozen=True, slots=True)
class DedupMarker:
    """Pointer to the last content handled, by identifier or by fingerprint."""

    last_seen_identifier: str | None = None
    last_seen_fingerprint: str | None = None

    def __post_init__(self) -> None:
        if self.last_seen_identifier and self.last_seen_fingerprint:
            raise ValueError("DedupMarker holds either an identifier or a fingerprint, not both")

    @classmethod
    def for_record(cls, record: ContentRecord) -> "DedupMarker":
        if record.identifier is not None:
            return cls(last_seen_identifier=record.identifier)
        return cls(last_seen_fingerprint=record.fingerprint)

    @property
    def is_empty(self) -> bool:
        return not (self.last_seen_identifier or self.last_seen_fingerprint)


@dataclass(frozen=True, slots=True)
class Classification:
    is_new: bool
    marker_to_persist: DedupMarker | None = None


class ChangeDetector:
    """Decide whether fetched content differs from what was last handled."""

    def classify(self, record: ContentRecord, stored: DedupMarker) -> Classification:
        if record.identifier is not None:
            is_new = record.identifier != stored.last_seen_identifier
        else:
            is_new = record.fingerprint != stored.last_seen_fingerprint
        if not is_new:
            return Classification(is_new=False)
        return Classification(is_new=True, marker_to_persist=DedupMarker.for_record(record))


class DedupStateStore:
    """Persist the dedup marker as ``{lastSeenId?, lastSeenHash?}``."""

    def __init__(self, manager: JsonDocumentManager, path: Path) -> None:
        self.manager = manager
        self.path = path

    def load(self) -> DedupMarker:
        document = self.manager.read(self.path, {})
        if not isinstance(document, dict):
            raise StoreError(f"Dedup state must be a mapping: {self.path}")
        try:
            return DedupMarker(
                last_seen_identifier=document.get("lastSeenId") or None,
                last_seen_fingerprint=document.get("lastSeenHash") or None,
            )
        except ValueError as exc:
            raise StoreError(f"Invalid dedup state in {self.path}: {exc}") from exc

    def save(self, marker: DedupMarker) -> None:
        document: dict[str, str] = {}
        if marker.last_seen_identifier:
            document["lastSeenId"] = marker.last_seen_identifier
        if marker.last_seen_fingerprint:
            document["lastSeenHash"] = marker.last_seen_fingerprint
        self.manager.write(self.path, document)


__all__ = ["ChangeDetector", "Classification", "DedupMarker", "DedupStateStore"]
