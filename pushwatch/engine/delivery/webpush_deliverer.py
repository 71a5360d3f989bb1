"""Web Push delivery through pywebpush."""

from __future__ import annotations

import requests
import structlog
from pywebpush import WebPushException, webpush

from ...config import PushConfig
from ..payload import NotificationPayload
from ..recipients import Credentials
from .base import BaseDeliverer, DeliveryResult


class WebPushDeliverer(BaseDeliverer):
    """Sign with the configured VAPID key and post to the browser's push service."""

    def __init__(
        self,
        push_config: PushConfig,
        session: requests.Session | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.push_config = push_config
        self.logger = logger or structlog.get_logger("pushwatch.delivery")
        self._session = session or requests.Session()

    def deliver(
        self, address: str, credentials: Credentials, payload: NotificationPayload
    ) -> DeliveryResult:
        try:
            webpush(
                subscription_info={"endpoint": address, "keys": credentials.as_dict()},
                data=payload.to_json(),
                vapid_private_key=self.push_config.vapid_private_key,
                # pywebpush mutates the claims (aud/exp), so hand it a fresh dict
                vapid_claims={"sub": self.push_config.vapid_subject},
                ttl=self.push_config.ttl,
                timeout=self.push_config.timeout,
                requests_session=self._session,
            )
        except WebPushException as exc:
            status_code = getattr(exc.response, "status_code", None)
            return DeliveryResult.from_status_code(status_code, str(exc))
        except (requests.RequestException, ValueError) as exc:
            return DeliveryResult.from_status_code(None, str(exc))
        return DeliveryResult.delivered()

    def close(self) -> None:
        self._session.close()


__all__ = ["WebPushDeliverer"]
