"""Pytest configuration providing shared fixtures."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import httpx
import pytest

from pushwatch.config import AppConfig, FeedConfig, PushConfig, ScheduleConfig
from pushwatch.engine import BaseDeliverer, Credentials, DeliveryResult, DeliveryStatus, Recipient
from pushwatch.engine.payload import NotificationPayload
from pushwatch.orchestrator import AppContext, PushService, build_context

FEED_URL = "https://feed.example.test/latest"
SITE_URL = "https://wiredove.net"

ENV_OVERRIDES = ("LATEST_URL", "POLL_MS", "VAPID_SUBJECT", "PUSH_ICON_URL")


@pytest.fixture(autouse=True)
def pushwatch_home(tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch) -> Path:
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("PUSHWATCH_HOME", str(home))
    for name in ENV_OVERRIDES:
        monkeypatch.delenv(name, raising=False)
    return home


class FeedStub:
    """Programmable feed endpoint served through httpx.MockTransport."""

    def __init__(self) -> None:
        self.status_code = 200
        self.body = ""
        self.error: Exception | None = None
        self.requests: list[httpx.Request] = []

    def respond(self, body: Any, status_code: int = 200) -> None:
        self.body = body if isinstance(body, str) else json.dumps(body)
        self.status_code = status_code
        self.error = None

    def fail_with(self, error: Exception) -> None:
        self.error = error

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, text=self.body, request=request)

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))


class FakeDeliverer(BaseDeliverer):
    """Deliverer returning scripted outcomes per address (default: delivered)."""

    def __init__(self, outcomes: dict[str, DeliveryStatus | Exception] | None = None) -> None:
        self.outcomes = outcomes or {}
        self.calls: list[tuple[str, Credentials, NotificationPayload]] = []
        self.closed = False

    def deliver(self, address, credentials, payload) -> DeliveryResult:  # noqa: ANN001
        self.calls.append((address, credentials, payload))
        outcome = self.outcomes.get(address, DeliveryStatus.DELIVERED)
        if isinstance(outcome, Exception):
            raise outcome
        if outcome is DeliveryStatus.GONE:
            return DeliveryResult(DeliveryStatus.GONE, "push subscription has unsubscribed or expired", 410)
        if outcome is DeliveryStatus.FAILED:
            return DeliveryResult(DeliveryStatus.FAILED, "push service unavailable", 503)
        return DeliveryResult.delivered()

    @property
    def addresses(self) -> list[str]:
        return [call[0] for call in self.calls]

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def app_config() -> AppConfig:
    return AppConfig(
        feed=FeedConfig(url=FEED_URL, site_url=SITE_URL),
        push=PushConfig(
            vapid_public_key="BPublicKeyForTests",
            vapid_private_key="private-key-for-tests",
            icon_url="https://wiredove.net/dovepurple_sm.png",
        ),
        schedule=ScheduleConfig(interval_seconds=60, run_on_start=False),
    )


@pytest.fixture
def feed() -> FeedStub:
    return FeedStub()


@pytest.fixture
def deliverer() -> FakeDeliverer:
    return FakeDeliverer()


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    path = tmp_path / "data"
    path.mkdir()
    return path


@pytest.fixture
def context(app_config: AppConfig, feed: FeedStub, deliverer: FakeDeliverer, data_dir: Path) -> AppContext:
    ctx = build_context(app_config, data_dir, deliverer=deliverer, client=feed.client())
    yield ctx
    ctx.close()


@pytest.fixture
def service(context: AppContext) -> PushService:
    return PushService(context)


@pytest.fixture
def make_deliverer() -> Callable[..., FakeDeliverer]:
    return FakeDeliverer


@pytest.fixture
def make_recipient() -> Callable[..., Recipient]:
    def _builder(address: str, p256dh: str = "client-key", auth: str = "client-auth") -> Recipient:
        return Recipient.create(address, Credentials(p256dh=p256dh, auth=auth))

    return _builder
