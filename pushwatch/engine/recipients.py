"""Recipient model and the store that persists the recipient set."""

from __future__ import annotations

import base64
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from ..errors import StoreError
from ..infra.storage import JsonDocumentManager


def recipient_id(address: str) -> str:
    """Deterministic id for a delivery address (unpadded base64)."""

    return base64.b64encode(address.encode("utf-8")).decode("ascii").replace("=", "")


def utc_timestamp(moment: datetime | None = None) -> str:
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True, slots=True)
class Credentials:
    """Key material the push service needs to encrypt a message for a browser."""

    p256dh: str
    auth: str

    def as_dict(self) -> dict[str, str]:
        return {"p256dh": self.p256dh, "auth": self.auth}


@dataclass(frozen=True, slots=True)
class Recipient:
    id: str
    address: str
    credentials: Credentials
    created_at: str
    last_notified_at: str | None = None

    @classmethod
    def create(cls, address: str, credentials: Credentials, now: datetime | None = None) -> "Recipient":
        return cls(
            id=recipient_id(address),
            address=address,
            credentials=credentials,
            created_at=utc_timestamp(now),
        )

    def notified(self, timestamp: str) -> "Recipient":
        return replace(self, last_notified_at=timestamp)

    def to_document(self) -> dict[str, Any]:
        document: dict[str, Any] = {
            "id": self.id,
            "endpoint": self.address,
            "keys": self.credentials.as_dict(),
            "createdAt": self.created_at,
        }
        if self.last_notified_at:
            document["lastNotifiedAt"] = self.last_notified_at
        return document

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "Recipient":
        keys = document.get("keys") or {}
        address = document["endpoint"]
        return cls(
            id=document.get("id") or recipient_id(address),
            address=address,
            credentials=Credentials(p256dh=keys["p256dh"], auth=keys["auth"]),
            created_at=document.get("createdAt") or "",
            last_notified_at=document.get("lastNotifiedAt"),
        )


class RecipientStore:
    """Ordered recipient list persisted as one JSON document.

    Every mutation rewrites the whole document.
    """

    def __init__(self, manager: JsonDocumentManager, path: Path) -> None:
        self.manager = manager
        self.path = path

    def list(self) -> list[Recipient]:
        document = self.manager.read(self.path, [])
        if not isinstance(document, list):
            raise StoreError(f"Recipient document must be a list: {self.path}")
        try:
            return [Recipient.from_document(entry) for entry in document]
        except (KeyError, TypeError, AttributeError) as exc:
            raise StoreError(f"Malformed recipient entry in {self.path}: {exc!r}") from exc

    def upsert_if_absent(self, recipient: Recipient) -> bool:
        """Append ``recipient`` unless its id is already stored; return whether it was added."""

        recipients = self.list()
        if any(existing.id == recipient.id for existing in recipients):
            return False
        recipients.append(recipient)
        self.replace_all(recipients)
        return True

    def remove_by_id(self, recipient_id: str) -> bool:
        recipients = self.list()
        remaining = [item for item in recipients if item.id != recipient_id]
        if len(remaining) == len(recipients):
            return False
        self.replace_all(remaining)
        return True

    def replace_all(self, recipients: list[Recipient]) -> None:
        self.manager.write(self.path, [recipient.to_document() for recipient in recipients])


__all__ = ["Credentials", "Recipient", "RecipientStore", "recipient_id", "utc_timestamp"]
