"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository, apply_env_overrides
from .models import AppConfig, FeedConfig, PushConfig, ScheduleConfig

__all__ = [
    "AppConfig",
    "ConfigLocator",
    "ConfigRepository",
    "FeedConfig",
    "PushConfig",
    "ScheduleConfig",
    "apply_env_overrides",
]
