"""Exception hierarchy shared across pushwatch components."""

from __future__ import annotations


class PushwatchError(Exception):
    """Base class for all pushwatch failures."""


class ConfigError(PushwatchError):
    """Raised when configuration cannot be read or validated."""


class StoreError(PushwatchError):
    """Raised when a persisted document cannot be read or written."""


class RecipientValidationError(PushwatchError):
    """Raised when a registration request is missing required fields."""


__all__ = ["ConfigError", "PushwatchError", "RecipientValidationError", "StoreError"]
