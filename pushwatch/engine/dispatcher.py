"""Sequential fan-out of one payload to every recipient."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Iterable

import structlog

from .delivery import BaseDeliverer, DeliveryResult, DeliveryStatus
from .payload import NotificationPayload
from .recipients import Recipient, utc_timestamp


@dataclass(frozen=True, slots=True)
class DispatchStats:
    delivered: int = 0
    pruned: int = 0
    retained: int = 0
    failed: int = 0

    def as_dict(self) -> dict[str, int]:
        return {
            "delivered": self.delivered,
            "pruned": self.pruned,
            "retained": self.retained,
            "failed": self.failed,
        }


@dataclass(slots=True)
class DispatchResult:
    stats: DispatchStats
    next_recipients: list[Recipient] = field(default_factory=list)


class Dispatcher:
    """Deliver to recipients one at a time and compute the next recipient set.

    Nothing is persisted here; the caller commits ``next_recipients`` once the
    whole pass is done.
    """

    def __init__(
        self,
        deliverer: BaseDeliverer,
        clock: Callable[[], datetime] | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.deliverer = deliverer
        self.clock = clock
        self.logger = logger or structlog.get_logger("pushwatch.dispatcher")

    def dispatch(self, payload: NotificationPayload, recipients: Iterable[Recipient]) -> DispatchResult:
        now = utc_timestamp(self.clock() if self.clock else None)
        next_recipients: list[Recipient] = []
        delivered = pruned = failed = 0
        for recipient in recipients:
            result = self._deliver_one(recipient, payload)
            if result.status is DeliveryStatus.DELIVERED:
                next_recipients.append(recipient.notified(now))
                delivered += 1
            elif result.status is DeliveryStatus.GONE:
                self.logger.warning(
                    "recipient_pruned",
                    recipient=recipient.id,
                    status=result.status_code,
                )
                pruned += 1
            else:
                self.logger.error(
                    "delivery_failed",
                    recipient=recipient.id,
                    status=result.status_code,
                    error=result.error,
                )
                next_recipients.append(recipient)
                failed += 1
        stats = DispatchStats(
            delivered=delivered,
            pruned=pruned,
            retained=len(next_recipients),
            failed=failed,
        )
        self.logger.info("dispatch_finished", **stats.as_dict())
        return DispatchResult(stats=stats, next_recipients=next_recipients)

    def _deliver_one(self, recipient: Recipient, payload: NotificationPayload) -> DeliveryResult:
        try:
            return self.deliverer.deliver(recipient.address, recipient.credentials, payload)
        except Exception as exc:  # noqa: BLE001
            return DeliveryResult(DeliveryStatus.FAILED, str(exc))


__all__ = ["DispatchResult", "DispatchStats", "Dispatcher"]
