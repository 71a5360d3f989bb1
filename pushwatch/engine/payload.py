"""Notification payload construction."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

import structlog

from .parser import ContentRecord

DEFAULT_TITLE = "New message"
DEFAULT_BODY = "Tap to view the latest update"
TITLE_TEMPLATE = "New Wiredove Message from {name}"
FRONT_MATTER_DELIMITER = "---"
FRONT_MATTER_KEYS = ("name", "body")
QUOTE_CHARS = "\"'"


@dataclass(frozen=True, slots=True)
class NotificationPayload:
    title: str
    body: str
    target_url: str
    source_identifier: str | None
    icon: str | None = None
    original_record: Any = field(default=None, repr=False)

    def to_message(self) -> dict[str, Any]:
        """Structured form handed to the delivery capability."""

        return {
            "title": self.title,
            "body": self.body,
            "url": self.target_url,
            "sourceIdentifier": self.source_identifier,
            "icon": self.icon,
            "originalRecord": self.original_record,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_message(), ensure_ascii=False, default=str)


def _front_matter_block(text: str) -> str:
    lines = text.strip().splitlines()
    if not lines or lines[0].strip() != FRONT_MATTER_DELIMITER:
        return text
    for index, line in enumerate(lines[1:], start=1):
        if line.strip() == FRONT_MATTER_DELIMITER:
            return "\n".join(lines[1:index])
    return "\n".join(lines[1:])


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in QUOTE_CHARS:
        return value[1:-1]
    return value


def parse_front_matter(text: str) -> dict[str, str]:
    """Extract trimmed ``name``/``body`` strings from ``key: value`` front matter.

    Each line is split on its first colon and the value is kept verbatim, so
    message text may contain colons, ``#`` or leading ``@``. The first
    occurrence of a key wins; missing or blank values fall back to defaults.
    """

    attrs: dict[str, str] = {}
    for line in _front_matter_block(text).splitlines():
        key, sep, value = line.partition(":")
        key = key.strip()
        if not sep or key not in FRONT_MATTER_KEYS or key in attrs:
            continue
        value = _unquote(value.strip()).strip()
        if value:
            attrs[key] = value
    return attrs


class PayloadBuilder:
    """Turn a content record into a recipient-facing notification."""

    def __init__(
        self,
        site_url: str,
        icon_url: str | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.site_url = site_url.rstrip("/")
        self.icon_url = icon_url
        self.logger = logger or structlog.get_logger("pushwatch.payload")

    def target_url(self, record: ContentRecord) -> str:
        key = record.key
        if key:
            return f"{self.site_url}/#{key}"
        return f"{self.site_url}/"

    def build(self, record: ContentRecord) -> NotificationPayload:
        attrs = parse_front_matter(record.raw_text) if record.raw_text else {}
        if record.raw_text and not attrs:
            self.logger.debug("front_matter_missing", identifier=record.key)
        name = attrs.get("name")
        return NotificationPayload(
            title=TITLE_TEMPLATE.format(name=name) if name else DEFAULT_TITLE,
            body=attrs.get("body") or DEFAULT_BODY,
            target_url=self.target_url(record),
            source_identifier=record.key or None,
            icon=self.icon_url,
            original_record=record.data,
        )


__all__ = [
    "DEFAULT_BODY",
    "DEFAULT_TITLE",
    "NotificationPayload",
    "PayloadBuilder",
    "parse_front_matter",
]
