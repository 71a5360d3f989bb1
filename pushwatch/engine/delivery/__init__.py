"""Delivery SPI and implementations."""

from .base import BaseDeliverer, DeliveryResult, DeliveryStatus, GONE_STATUS_CODES
from .webpush_deliverer import WebPushDeliverer

__all__ = [
    "BaseDeliverer",
    "DeliveryResult",
    "DeliveryStatus",
    "GONE_STATUS_CODES",
    "WebPushDeliverer",
]
