"""Use cases for creating and delivering notifications."""

from .create_notification import create_notification
from .dispatch_notification import (
    dispatch_due_notifications,
    dispatch_notification,
    resolve_notification_audience,
)
from .get_notification import get_notification, list_notifications
from .validators import NotificationTarget, validate_target

__all__ = [
    "NotificationTarget",
    "create_notification",
    "dispatch_due_notifications",
    "dispatch_notification",
    "get_notification",
    "list_notifications",
    "resolve_notification_audience",
    "validate_target",
]
