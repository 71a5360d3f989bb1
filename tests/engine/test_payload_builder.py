from __future__ import annotations

import json

import pytest

from pushwatch.engine import ContentRecord, PayloadBuilder
from pushwatch.engine.payload import DEFAULT_BODY, DEFAULT_TITLE, parse_front_matter

SITE = "https://wiredove.net"


def _record(text: str | None, identifier: str | None = "abc123", fingerprint: str | None = None) -> ContentRecord:
    data = {"hash": identifier, "text": text} if identifier else {"text": text}
    return ContentRecord(identifier=identifier, fingerprint=fingerprint, raw_text=text, data=data)


def test_builds_named_notification() -> None:
    builder = PayloadBuilder(SITE, icon_url="https://wiredove.net/icon.png")
    payload = builder.build(_record("name: Alice\nbody: Hello world"))
    assert payload.title == "New Wiredove Message from Alice"
    assert payload.body == "Hello world"
    assert payload.target_url == "https://wiredove.net/#abc123"
    assert payload.source_identifier == "abc123"
    assert payload.icon == "https://wiredove.net/icon.png"


def test_message_shape_handed_to_delivery() -> None:
    payload = PayloadBuilder(SITE + "/").build(_record("name: Alice\nbody: Hello world"))
    message = json.loads(payload.to_json())
    assert set(message) == {"title", "body", "url", "sourceIdentifier", "icon", "originalRecord"}
    assert message["url"] == "https://wiredove.net/#abc123"
    assert message["originalRecord"]["hash"] == "abc123"


def test_fingerprint_used_as_fragment_without_identifier() -> None:
    record = ContentRecord(identifier=None, fingerprint="cafe" * 16, data="opaque")
    payload = PayloadBuilder(SITE).build(record)
    assert payload.target_url == f"{SITE}/#{'cafe' * 16}"
    assert payload.title == DEFAULT_TITLE
    assert payload.body == DEFAULT_BODY


def test_bare_root_without_any_key() -> None:
    record = ContentRecord(identifier=None, fingerprint=None)
    assert PayloadBuilder(SITE).build(record).target_url == "https://wiredove.net/"


@pytest.mark.parametrize(
    ("text", "title", "body"),
    [
        ("name: '   '\nbody: '  '", DEFAULT_TITLE, DEFAULT_BODY),
        ("body: Only a body", DEFAULT_TITLE, "Only a body"),
        ("name: Carol", "New Wiredove Message from Carol", DEFAULT_BODY),
        ("name: [unclosed", "New Wiredove Message from [unclosed", DEFAULT_BODY),
        ("just some words", DEFAULT_TITLE, DEFAULT_BODY),
        ("name: 42\nbody: 7", "New Wiredove Message from 42", "7"),
        ("name: Alice\nbody: Reminder: meeting at 5", "New Wiredove Message from Alice", "Reminder: meeting at 5"),
        ("name: Alice\nbody: @bob hi", "New Wiredove Message from Alice", "@bob hi"),
        ("name: Alice\nbody: we're #1 today", "New Wiredove Message from Alice", "we're #1 today"),
        ("name: Alice\nname: Mallory\nbody: \"quoted\"", "New Wiredove Message from Alice", "quoted"),
        ("", DEFAULT_TITLE, DEFAULT_BODY),
    ],
)
def test_fallbacks(text: str, title: str, body: str) -> None:
    payload = PayloadBuilder(SITE).build(_record(text))
    assert (payload.title, payload.body) == (title, body)


def test_front_matter_between_delimiters() -> None:
    text = "---\nname: Dana\nbody: '  spaced out  '\n---\nThe rest of the post: with colons: everywhere"
    assert parse_front_matter(text) == {"name": "Dana", "body": "spaced out"}


def test_front_matter_ignores_other_lines() -> None:
    text = "title: ignored\nno separator here\n  name :  Eve  \nbody:"
    assert parse_front_matter(text) == {"name": "Eve"}
