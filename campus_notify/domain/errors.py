"""Exceptions raised by the delivery engine and its use cases."""


class InvalidSelectorError(ValueError):
    """Raised when a notification's target reference is missing or malformed."""


class ProviderUnavailableError(RuntimeError):
    """Raised when the push provider is unconfigured or unreachable."""


class NotificationNotFoundError(LookupError):
    """Raised when a notification id does not exist."""


class DeviceTokenNotFoundError(LookupError):
    """Raised when a device token id does not exist."""


__all__ = [
    "DeviceTokenNotFoundError",
    "InvalidSelectorError",
    "NotificationNotFoundError",
    "ProviderUnavailableError",
]
