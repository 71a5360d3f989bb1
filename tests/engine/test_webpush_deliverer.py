from __future__ import annotations

import json
from types import SimpleNamespace

import pytest
import requests
from pywebpush import WebPushException

from pushwatch.config import PushConfig
from pushwatch.engine import ContentRecord, Credentials, DeliveryStatus, PayloadBuilder, WebPushDeliverer

MODULE = "pushwatch.engine.delivery.webpush_deliverer.webpush"


@pytest.fixture
def push_config() -> PushConfig:
    return PushConfig(
        vapid_public_key="BPub",
        vapid_private_key="priv",
        vapid_subject="mailto:ops@example.com",
        ttl=600,
        timeout=5,
    )


@pytest.fixture
def payload():
    record = ContentRecord(identifier="abc123", fingerprint=None, raw_text="name: Alice\nbody: Hi", data={"hash": "abc123"})
    return PayloadBuilder("https://wiredove.net", icon_url="https://wiredove.net/icon.png").build(record)


def test_successful_delivery_passes_vapid_details(monkeypatch, push_config, payload) -> None:
    captured: dict = {}

    def fake_webpush(**kwargs):
        captured.update(kwargs)
        return SimpleNamespace(status_code=201)

    monkeypatch.setattr(MODULE, fake_webpush)
    deliverer = WebPushDeliverer(push_config)
    result = deliverer.deliver("https://push.example/a", Credentials(p256dh="k", auth="a"), payload)
    deliverer.close()

    assert result.status is DeliveryStatus.DELIVERED
    assert captured["subscription_info"] == {
        "endpoint": "https://push.example/a",
        "keys": {"p256dh": "k", "auth": "a"},
    }
    assert captured["vapid_private_key"] == "priv"
    assert captured["vapid_claims"] == {"sub": "mailto:ops@example.com"}
    assert captured["ttl"] == 600
    assert captured["timeout"] == 5
    message = json.loads(captured["data"])
    assert message["title"] == "New Wiredove Message from Alice"
    assert message["url"] == "https://wiredove.net/#abc123"
    assert message["icon"] == "https://wiredove.net/icon.png"


@pytest.mark.parametrize(
    ("status_code", "expected"),
    [
        (404, DeliveryStatus.GONE),
        (410, DeliveryStatus.GONE),
        (413, DeliveryStatus.FAILED),
        (429, DeliveryStatus.FAILED),
        (500, DeliveryStatus.FAILED),
        (None, DeliveryStatus.FAILED),
    ],
)
def test_push_service_errors_are_classified(monkeypatch, push_config, payload, status_code, expected) -> None:
    response = SimpleNamespace(status_code=status_code) if status_code else None

    def fake_webpush(**_kwargs):
        raise WebPushException("Push failed", response=response)

    monkeypatch.setattr(MODULE, fake_webpush)
    result = WebPushDeliverer(push_config).deliver("https://push.example/a", Credentials(p256dh="k", auth="a"), payload)
    assert result.status is expected
    assert result.status_code == status_code
    assert "Push failed" in (result.error or "")


def test_transport_errors_are_transient(monkeypatch, push_config, payload) -> None:
    def fake_webpush(**_kwargs):
        raise requests.ConnectionError("connection reset")

    monkeypatch.setattr(MODULE, fake_webpush)
    result = WebPushDeliverer(push_config).deliver("https://push.example/a", Credentials(p256dh="k", auth="a"), payload)
    assert result.status is DeliveryStatus.FAILED
    assert result.status_code is None
