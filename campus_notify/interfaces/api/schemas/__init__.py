from .device_token import (
    DeviceTokenRead,
    DeviceTokenRegister,
    DeviceTokenRegistrationResponse,
    DeviceTokenStatusUpdate,
    TenantResubscribeResponse,
    TopicSubscriptionResponse,
)
from .notification import (
    AudienceRead,
    DeliveryAttemptRead,
    DeliveryReportRead,
    NotificationCreate,
    NotificationCreateResponse,
    NotificationRead,
)

__all__ = [
    "AudienceRead",
    "DeliveryAttemptRead",
    "DeliveryReportRead",
    "DeviceTokenRead",
    "DeviceTokenRegister",
    "DeviceTokenRegistrationResponse",
    "DeviceTokenStatusUpdate",
    "NotificationCreate",
    "NotificationCreateResponse",
    "NotificationRead",
    "TenantResubscribeResponse",
    "TopicSubscriptionResponse",
]
