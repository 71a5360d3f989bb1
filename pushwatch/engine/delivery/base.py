"""Delivery Service Provider Interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

from ..payload import NotificationPayload
from ..recipients import Credentials

# Push services answer these for endpoints that expired or were unsubscribed.
GONE_STATUS_CODES = frozenset({404, 410})


class DeliveryStatus(str, Enum):
    DELIVERED = "delivered"
    GONE = "gone"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class DeliveryResult:
    status: DeliveryStatus
    error: str | None = None
    status_code: int | None = None

    @classmethod
    def delivered(cls) -> "DeliveryResult":
        return cls(DeliveryStatus.DELIVERED)

    @classmethod
    def from_status_code(cls, status_code: int | None, error: str) -> "DeliveryResult":
        if status_code in GONE_STATUS_CODES:
            return cls(DeliveryStatus.GONE, error, status_code)
        return cls(DeliveryStatus.FAILED, error, status_code)


class BaseDeliverer(ABC):
    """Uniform delivery contract: send a payload to one address."""

    @abstractmethod
    def deliver(
        self, address: str, credentials: Credentials, payload: NotificationPayload
    ) -> DeliveryResult:
        """Attempt a single delivery and classify the outcome."""

    def close(self) -> None:
        """Release underlying resources."""


__all__ = ["BaseDeliverer", "DeliveryResult", "DeliveryStatus", "GONE_STATUS_CODES"]
