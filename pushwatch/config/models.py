"""Pydantic models describing pushwatch configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_FEED_URL = "https://pub.wiredove.net/latest"
DEFAULT_SITE_URL = "https://wiredove.net"
DEFAULT_VAPID_SUBJECT = "mailto:ops@wiredove.net"
DEFAULT_ICON_URL = "https://wiredove.net/dovepurple_sm.png"


class FeedConfig(BaseModel):
    """Where the latest content lives and where notifications should link to."""

    url: str = DEFAULT_FEED_URL
    site_url: str = DEFAULT_SITE_URL
    timeout: float = 15.0
    user_agent: str | None = None

    @field_validator("url", "site_url")
    @classmethod
    def _require_http(cls, value: str) -> str:
        value = value.strip()
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"Expected an http(s) URL, got {value!r}")
        return value

    @field_validator("timeout")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("timeout must be > 0")
        return value


class PushConfig(BaseModel):
    """Web push signing material and delivery options.

    The key pair is provisioned elsewhere; pushwatch only reads it.
    """

    vapid_public_key: str = ""
    vapid_private_key: str = ""
    vapid_subject: str = DEFAULT_VAPID_SUBJECT
    icon_url: str = DEFAULT_ICON_URL
    ttl: int = 86400
    timeout: float = 10.0

    @field_validator("vapid_subject")
    @classmethod
    def _validate_subject(cls, value: str) -> str:
        if not value.startswith(("mailto:", "https:")):
            raise ValueError("vapid_subject must be a mailto: or https: URI")
        return value

    @field_validator("ttl")
    @classmethod
    def _non_negative_ttl(cls, value: int) -> int:
        if value < 0:
            raise ValueError("ttl must be >= 0")
        return value

    @property
    def has_keys(self) -> bool:
        return bool(self.vapid_public_key and self.vapid_private_key)


class ScheduleConfig(BaseModel):
    """Fixed-interval polling options."""

    interval_seconds: float = 120.0
    run_on_start: bool = True

    @model_validator(mode="after")
    def _validate_interval(self) -> "ScheduleConfig":
        if self.interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        return self


class AppConfig(BaseModel):
    """Top-level configuration document."""

    feed: FeedConfig = Field(default_factory=FeedConfig)
    push: PushConfig = Field(default_factory=PushConfig)
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)
    data_dir: Path = Field(default=Path("data"))

    @field_validator("data_dir", mode="before")
    @classmethod
    def _coerce_dir(cls, value: Any) -> Path:
        return Path(value)

    def resolved_data_dir(self, base_dir: Path) -> Path:
        """Return the data directory, anchoring relative paths at ``base_dir``."""

        if not self.data_dir.is_absolute():
            return (base_dir / self.data_dir).resolve()
        return self.data_dir


__all__ = ["AppConfig", "FeedConfig", "PushConfig", "ScheduleConfig"]
