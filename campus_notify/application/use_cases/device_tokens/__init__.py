"""Use cases for managing the device token registry."""

from .change_topic_subscription import SubscriptionChange, change_topic_subscription
from .list_device_tokens import list_device_tokens
from .register_token import TokenRegistration, register_token, subscribe_token_to_topic
from .resubscribe_tenant_tokens import ResubscribeSummary, resubscribe_tenant_tokens
from .set_token_active import get_device_token, set_token_active

__all__ = [
    "ResubscribeSummary",
    "SubscriptionChange",
    "TokenRegistration",
    "change_topic_subscription",
    "get_device_token",
    "list_device_tokens",
    "register_token",
    "resubscribe_tenant_tokens",
    "set_token_active",
    "subscribe_token_to_topic",
]
