"""Poll cycle orchestration wiring fetch, change detection, payload build and dispatch."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from threading import Lock
from typing import Any, Mapping

import httpx

from .config import AppConfig
from .engine import (
    BaseDeliverer,
    ChangeDetector,
    ContentFetcher,
    ContentPreview,
    Credentials,
    DedupStateStore,
    DispatchStats,
    Dispatcher,
    PayloadBuilder,
    Recipient,
    RecipientStore,
    Unavailable,
    WebPushDeliverer,
    recipient_id,
)
from .engine.parser import summarize
from .errors import RecipientValidationError
from .infra import JsonDocumentManager
from .logging_conf import configure_logging

SUBSCRIPTIONS_FILENAME = "subscriptions.json"
STATE_FILENAME = "state.json"

NO_NEW_CONTENT = "no new content"
NO_RECIPIENTS = "no recipients"
POLL_ERROR = "poll error"
CYCLE_IN_PROGRESS = "cycle in progress"


@dataclass(slots=True)
class CycleSummary:
    """Outcome of one poll cycle, as reported to whoever triggered it."""

    changed: bool
    delivered: bool
    reason: str | None = None
    stats: DispatchStats | None = None
    latest: ContentPreview | None = None

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"changed": self.changed, "sent": self.delivered}
        if self.reason:
            payload["reason"] = self.reason
        if self.stats is not None:
            payload["stats"] = self.stats.as_dict()
        if self.latest is not None:
            payload["latest"] = self.latest.as_dict()
        return payload


@dataclass(slots=True)
class RegistrationResult:
    recipient: Recipient
    created: bool


@dataclass(slots=True)
class AppContext:
    """Everything a cycle needs, built once at startup and passed explicitly."""

    config: AppConfig
    fetcher: ContentFetcher
    detector: ChangeDetector
    dedup_store: DedupStateStore
    recipient_store: RecipientStore
    payload_builder: PayloadBuilder
    dispatcher: Dispatcher
    lock: Lock = field(default_factory=Lock)

    def close(self) -> None:
        self.fetcher.close()
        self.dispatcher.deliverer.close()


def build_context(
    config: AppConfig,
    data_dir: Path,
    *,
    deliverer: BaseDeliverer | None = None,
    client: httpx.Client | None = None,
    manager: JsonDocumentManager | None = None,
) -> AppContext:
    manager = manager or JsonDocumentManager()
    return AppContext(
        config=config,
        fetcher=ContentFetcher(config.feed, client=client),
        detector=ChangeDetector(),
        dedup_store=DedupStateStore(manager, data_dir / STATE_FILENAME),
        recipient_store=RecipientStore(manager, data_dir / SUBSCRIPTIONS_FILENAME),
        payload_builder=PayloadBuilder(config.feed.site_url, icon_url=config.push.icon_url),
        dispatcher=Dispatcher(deliverer or WebPushDeliverer(config.push)),
    )


class PollCycle:
    """One fetch → classify → (build → dispatch) pass.

    Store failures propagate to the caller; every other failure mode is
    reported through the returned summary.
    """

    def __init__(self, context: AppContext) -> None:
        self.context = context
        self.logger = configure_logging().bind(component="poll_cycle")

    def run(self, force: bool = False) -> CycleSummary:
        ctx = self.context
        outcome = ctx.fetcher.fetch()
        if isinstance(outcome, Unavailable):
            self.logger.info("cycle_aborted", reason=outcome.reason, force=force)
            return CycleSummary(changed=False, delivered=False, reason=outcome.reason)

        record = outcome
        latest = summarize(record)
        stored = ctx.dedup_store.load()
        if stored.is_empty:
            self.logger.info("dedup_state_empty", key=record.key)
        classification = ctx.detector.classify(record, stored)
        if not classification.is_new and not force:
            self.logger.debug("cycle_unchanged", key=record.key)
            return CycleSummary(changed=False, delivered=False, reason=NO_NEW_CONTENT, latest=latest)

        # Mark as handled before delivering so a crash mid-pass cannot resend it.
        if classification.marker_to_persist is not None:
            ctx.dedup_store.save(classification.marker_to_persist)
            self.logger.info("content_marked", key=record.key)

        recipients = ctx.recipient_store.list()
        if not recipients:
            self.logger.info("cycle_no_recipients", key=record.key)
            return CycleSummary(
                changed=classification.is_new,
                delivered=False,
                reason=NO_RECIPIENTS,
                latest=latest,
            )

        payload = ctx.payload_builder.build(record)
        result = ctx.dispatcher.dispatch(payload, recipients)
        ctx.recipient_store.replace_all(result.next_recipients)
        self.logger.info(
            "cycle_completed",
            key=record.key,
            changed=classification.is_new,
            force=force,
            **result.stats.as_dict(),
        )
        return CycleSummary(
            changed=classification.is_new,
            delivered=True,
            stats=result.stats,
            latest=latest,
        )


class PushService:
    """Operations offered to the outer surfaces (CLI, HTTP routing, timer)."""

    def __init__(self, context: AppContext, scheduler=None) -> None:
        self.context = context
        self.scheduler = scheduler
        self.cycle = PollCycle(context)
        self.logger = configure_logging().bind(component="service")

    # ------------------------------------------------------------------
    # Cycle triggers
    # ------------------------------------------------------------------
    def trigger_cycle(self, force: bool = False) -> CycleSummary:
        """Run a cycle, waiting for any cycle already in flight."""

        with self.context.lock:
            return self._run_guarded(force)

    def scheduled_tick(self) -> CycleSummary:
        """Timer entry point: skip the tick if a cycle is already running."""

        if not self.context.lock.acquire(blocking=False):
            self.logger.info("tick_skipped", reason=CYCLE_IN_PROGRESS)
            return CycleSummary(changed=False, delivered=False, reason=CYCLE_IN_PROGRESS)
        try:
            return self._run_guarded(False)
        finally:
            self.context.lock.release()

    def _run_guarded(self, force: bool) -> CycleSummary:
        try:
            return self.cycle.run(force=force)
        except Exception:  # noqa: BLE001
            self.logger.exception("poll_error", force=force)
            return CycleSummary(changed=False, delivered=False, reason=POLL_ERROR)

    # ------------------------------------------------------------------
    # Recipient management
    # ------------------------------------------------------------------
    def register_recipient(
        self, address: str | None, credentials: Mapping[str, Any] | Credentials | None
    ) -> RegistrationResult:
        if not isinstance(address, str) or not address.strip():
            raise RecipientValidationError("missing endpoint")
        creds = _coerce_credentials(credentials)
        recipient = Recipient.create(address, creds)
        with self.context.lock:
            created = self.context.recipient_store.upsert_if_absent(recipient)
        if created:
            self.logger.info("recipient_registered", recipient=recipient.id)
        return RegistrationResult(recipient=recipient, created=created)

    def unregister_recipient(self, address: str | None) -> bool:
        if not isinstance(address, str) or not address.strip():
            raise RecipientValidationError("missing endpoint")
        rid = recipient_id(address)
        with self.context.lock:
            removed = self.context.recipient_store.remove_by_id(rid)
        if removed:
            self.logger.info("recipient_unregistered", recipient=rid)
        return removed

    def list_recipients(self) -> list[Recipient]:
        return self.context.recipient_store.list()

    def public_key(self) -> str:
        return self.context.config.push.vapid_public_key

    def scheduled_jobs(self) -> list[dict]:
        if self.scheduler is None:
            return []
        return self.scheduler.list_jobs()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def start(self) -> None:
        schedule = self.context.config.schedule
        if schedule.run_on_start:
            self.scheduled_tick()
        if self.scheduler is not None:
            self.scheduler.schedule_poll(self.scheduled_tick, schedule)
            self.scheduler.start()

    def close(self) -> None:
        if self.scheduler is not None:
            self.scheduler.shutdown()
        self.context.close()


def _coerce_credentials(credentials: Mapping[str, Any] | Credentials | None) -> Credentials:
    if isinstance(credentials, Credentials):
        p256dh, auth = credentials.p256dh, credentials.auth
    elif isinstance(credentials, Mapping):
        p256dh, auth = credentials.get("p256dh"), credentials.get("auth")
    else:
        raise RecipientValidationError("missing fields")
    if not (isinstance(p256dh, str) and p256dh and isinstance(auth, str) and auth):
        raise RecipientValidationError("missing fields")
    return Credentials(p256dh=p256dh, auth=auth)


__all__ = [
    "AppContext",
    "CycleSummary",
    "PollCycle",
    "PushService",
    "RegistrationResult",
    "build_context",
]
