"""Repository implementations for infrastructure layer."""

from .class_member_repository import ClassMemberRepository
from .device_token_repository import DeviceTokenRepository
from .notification_repository import NotificationRepository

__all__ = [
    "ClassMemberRepository",
    "DeviceTokenRepository",
    "NotificationRepository",
]
