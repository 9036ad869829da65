"""ORM models used by the application infrastructure."""

from .class_member import ClassMemberModel
from .device_token import DeviceTokenModel
from .notification import NotificationModel

__all__ = [
    "ClassMemberModel",
    "DeviceTokenModel",
    "NotificationModel",
]
