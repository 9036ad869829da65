"""Domain entities exposed by the application."""

from .class_member import ClassMember
from .delivery import (
    DeliveryAttempt,
    DeliveryChannel,
    DeliveryOutcome,
    DeliveryReport,
    DeliveryResult,
    ErrorKind,
    OutcomeStatus,
    RecipientSet,
)
from .device_token import DEFAULT_DEVICE_KIND, DEVICE_KINDS, TOKEN_ROLES, DeviceToken
from .notification import (
    DEFAULT_TITLES,
    Notification,
    NotificationKind,
    NotificationMessage,
)
from .principal import (
    SCHOOL_ADMIN_ROLE,
    SERVICE_ROLE,
    SUPER_ADMIN_ROLE,
    TEACHER_ROLE,
    Principal,
)

__all__ = [
    "ClassMember",
    "DEFAULT_DEVICE_KIND",
    "DEFAULT_TITLES",
    "DEVICE_KINDS",
    "DeliveryAttempt",
    "DeliveryChannel",
    "DeliveryOutcome",
    "DeliveryReport",
    "DeliveryResult",
    "DeviceToken",
    "ErrorKind",
    "Notification",
    "NotificationKind",
    "NotificationMessage",
    "OutcomeStatus",
    "Principal",
    "RecipientSet",
    "SCHOOL_ADMIN_ROLE",
    "SERVICE_ROLE",
    "SUPER_ADMIN_ROLE",
    "TEACHER_ROLE",
    "TOKEN_ROLES",
]
