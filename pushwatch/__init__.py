"""Poll a content feed and fan out web push notifications."""

__version__ = "0.1.0"
