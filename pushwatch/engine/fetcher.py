"""HTTP fetching of the latest feed content."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

import httpx
import structlog

from ..config import FeedConfig
from .parser import ContentRecord, parse_body, to_content_record

FETCH_FAILED = "fetch failed"
EMPTY_RESPONSE = "empty response"


@dataclass(frozen=True, slots=True)
class Unavailable:
    """The feed could not provide content this time."""

    reason: str
    status_code: int | None = None


FetchOutcome = Union[ContentRecord, Unavailable]


class ContentFetcher:
    """Perform a single uncached read of the feed resource."""

    def __init__(
        self,
        feed_config: FeedConfig,
        client: httpx.Client | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.feed_config = feed_config
        self.logger = logger or structlog.get_logger("pushwatch.fetcher")
        self._headers = {"Cache-Control": "no-cache", "Pragma": "no-cache"}
        if feed_config.user_agent:
            self._headers["User-Agent"] = feed_config.user_agent
        self._client = client or httpx.Client(follow_redirects=True, timeout=feed_config.timeout)

    def close(self) -> None:
        self._client.close()

    def fetch(self) -> FetchOutcome:
        url = self.feed_config.url
        try:
            response = self._client.get(url, headers=self._headers)
        except httpx.HTTPError as exc:
            self.logger.error("fetch_failed", url=url, error=str(exc))
            return Unavailable(FETCH_FAILED)
        if not response.is_success:
            self.logger.error("fetch_failed", url=url, status=response.status_code)
            return Unavailable(FETCH_FAILED, status_code=response.status_code)
        text = response.text
        if not text.strip():
            self.logger.info("fetch_empty", url=url)
            return Unavailable(EMPTY_RESPONSE, status_code=response.status_code)
        body = parse_body(text, content=response.content)
        self.logger.debug("fetch_ok", url=url, kind=body.kind.value, size=len(text))
        return to_content_record(body)


__all__ = ["ContentFetcher", "EMPTY_RESPONSE", "FETCH_FAILED", "FetchOutcome", "Unavailable"]
