from __future__ import annotations

import json

import pytest

from pushwatch.engine import ChangeDetector, ContentRecord, DedupMarker, DedupStateStore
from pushwatch.errors import StoreError
from pushwatch.infra import JsonDocumentManager


def _by_id(identifier: str) -> ContentRecord:
    return ContentRecord(identifier=identifier, fingerprint=None)


def _by_fingerprint(fingerprint: str) -> ContentRecord:
    return ContentRecord(identifier=None, fingerprint=fingerprint)


def test_first_sighting_is_new() -> None:
    result = ChangeDetector().classify(_by_id("abc123"), DedupMarker())
    assert result.is_new
    assert result.marker_to_persist == DedupMarker(last_seen_identifier="abc123")


def test_same_identifier_is_not_new() -> None:
    result = ChangeDetector().classify(_by_id("abc123"), DedupMarker(last_seen_identifier="abc123"))
    assert not result.is_new
    assert result.marker_to_persist is None


def test_fingerprint_compared_against_fingerprint_marker() -> None:
    detector = ChangeDetector()
    stored = DedupMarker(last_seen_fingerprint="f" * 64)
    assert not detector.classify(_by_fingerprint("f" * 64), stored).is_new
    changed = detector.classify(_by_fingerprint("e" * 64), stored)
    assert changed.is_new
    assert changed.marker_to_persist == DedupMarker(last_seen_fingerprint="e" * 64)


def test_switching_key_kind_counts_as_new() -> None:
    detector = ChangeDetector()
    stored = DedupMarker(last_seen_fingerprint="f" * 64)
    result = detector.classify(_by_id("abc123"), stored)
    assert result.is_new
    assert result.marker_to_persist.last_seen_fingerprint is None


def test_marker_rejects_both_keys() -> None:
    with pytest.raises(ValueError):
        DedupMarker(last_seen_identifier="a", last_seen_fingerprint="b")


def test_state_store_roundtrip(tmp_path) -> None:
    path = tmp_path / "state.json"
    store = DedupStateStore(JsonDocumentManager(), path)
    assert store.load().is_empty is True

    store.save(DedupMarker(last_seen_identifier="abc123"))
    assert json.loads(path.read_text(encoding="utf-8")) == {"lastSeenId": "abc123"}
    assert store.load() == DedupMarker(last_seen_identifier="abc123")

    store.save(DedupMarker(last_seen_fingerprint="deadbeef"))
    assert json.loads(path.read_text(encoding="utf-8")) == {"lastSeenHash": "deadbeef"}



def test_state_store_rejects_malformed_documents(tmp_path) -> None:
    path = tmp_path / "state.json"
    store = DedupStateStore(JsonDocumentManager(), path)
    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(StoreError):
        store.load()
    path.write_text('{"lastSeenId": "a", "lastSeenHash": "b"}', encoding="utf-8")
    with pytest.raises(StoreError):
        store.load()
