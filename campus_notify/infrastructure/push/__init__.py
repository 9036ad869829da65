"""Push provider boundary and its implementations."""

from .base import BulkPushProvider, PushProvider, TopicManager
from .firebase import FirebasePushProvider, build_push_provider, classify_firebase_error
from .subscriptions import subscribe_tokens, unsubscribe_tokens

__all__ = [
    "BulkPushProvider",
    "FirebasePushProvider",
    "PushProvider",
    "TopicManager",
    "build_push_provider",
    "classify_firebase_error",
    "subscribe_tokens",
    "unsubscribe_tokens",
]
