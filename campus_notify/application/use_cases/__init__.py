"""Aggregate application use cases."""

from .device_tokens import register_token, set_token_active
from .notifications import dispatch_due_notifications, dispatch_notification

__all__ = [
    "dispatch_due_notifications",
    "dispatch_notification",
    "register_token",
    "set_token_active",
]
