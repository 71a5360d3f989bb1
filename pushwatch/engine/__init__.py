"""Engine components orchestrating fetch → detect → build → dispatch."""

from .dedup import ChangeDetector, Classification, DedupMarker, DedupStateStore
from .delivery import BaseDeliverer, DeliveryResult, DeliveryStatus, WebPushDeliverer
from .dispatcher import DispatchResult, DispatchStats, Dispatcher
from .fetcher import ContentFetcher, FetchOutcome, Unavailable
from .parser import ContentPreview, ContentRecord, FeedBody, FeedBodyKind
from .payload import NotificationPayload, PayloadBuilder
from .recipients import Credentials, Recipient, RecipientStore, recipient_id

__all__ = [
    "BaseDeliverer",
    "ChangeDetector",
    "Classification",
    "ContentFetcher",
    "ContentPreview",
    "ContentRecord",
    "Credentials",
    "DedupMarker",
    "DedupStateStore",
    "DeliveryResult",
    "DeliveryStatus",
    "DispatchResult",
    "DispatchStats",
    "Dispatcher",
    "FeedBody",
    "FeedBodyKind",
    "FetchOutcome",
    "NotificationPayload",
    "PayloadBuilder",
    "Recipient",
    "RecipientStore",
    "Unavailable",
    "WebPushDeliverer",
    "recipient_id",
]
