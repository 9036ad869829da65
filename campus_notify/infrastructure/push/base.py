"""Provider boundary used by the delivery engine to reach devices."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence

from campus_notify.domain.entities import DeliveryOutcome, NotificationMessage


class PushProvider(ABC):
    """Minimal send primitives every push provider must implement.

    Implementations convert provider-specific rejections into failed
    :class:`DeliveryOutcome` values. Unexpected exceptions may propagate; the
    dispatcher records them as a failure for that one recipient.
    """

    name = "push"

    @abstractmethod
    def send_to_token(
        self, token: str, message: NotificationMessage, data: Mapping[str, str]
    ) -> DeliveryOutcome:
        """Deliver ``message`` to a single device token."""

    @abstractmethod
    def send_to_topic(
        self, topic: str, message: NotificationMessage, data: Mapping[str, str]
    ) -> DeliveryOutcome:
        """Deliver ``message`` to every device subscribed to ``topic``."""

    def is_available(self) -> bool:
        return True

    def close(self) -> None:
        """Release provider resources at shutdown."""


class BulkPushProvider(PushProvider):
    """Provider exposing a native many-tokens-in-one-call primitive."""

    @abstractmethod
    def send_to_tokens(
        self,
        tokens: Sequence[str],
        message: NotificationMessage,
        data: Mapping[str, str],
    ) -> list[DeliveryOutcome]:
        """Deliver ``message`` to ``tokens`` returning one outcome per token, in order."""


class TopicManager(ABC):
    """Optional capability to manage topic subscriptions on the provider side."""

    @abstractmethod
    def subscribe_to_topic(self, tokens: Sequence[str], topic: str) -> int:
        """Subscribe ``tokens`` to ``topic`` returning how many succeeded."""

    @abstractmethod
    def unsubscribe_from_topic(self, tokens: Sequence[str], topic: str) -> int:
        """Unsubscribe ``tokens`` from ``topic`` returning how many succeeded."""


__all__ = ["BulkPushProvider", "PushProvider", "TopicManager"]
