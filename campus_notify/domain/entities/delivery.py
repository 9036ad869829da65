"""Value objects describing how a notification was delivered."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Sequence


class DeliveryChannel(str, Enum):
    """Physical channel used for one delivery attempt."""

    TOKEN_LIST = "token_list"
    TOPIC = "topic"


class OutcomeStatus(str, Enum):
    """Result of a single send against the provider."""

    DELIVERED = "delivered"
    # Accepted by the provider, which cannot say whether anybody was reached.
    ACCEPTED = "accepted"
    FAILED = "failed"
    # Accepted by the provider, but it knows nobody was reached.
    EMPTY = "empty"


class ErrorKind(str, Enum):
    """Error categories reported in a :class:`DeliveryResult`."""

    INVALID_SELECTOR = "invalid_selector"
    EMPTY_AUDIENCE = "empty_audience"
    PROVIDER_UNAVAILABLE = "provider_unavailable"
    PARTIAL_DELIVERY_FAILURE = "partial_delivery_failure"
    DELIVERY_FAILED = "delivery_failed"


@dataclass(frozen=True)
class RecipientSet:
    """Concrete delivery target resolved for one notification.

    A token list carries the registry ids alongside the tokens (same order) so
    that tokens rejected by the provider can be revoked afterwards.
    """

    channel: DeliveryChannel
    tokens: tuple[str, ...] = ()
    token_ids: tuple[int | None, ...] = ()
    name: str | None = None

    @classmethod
    def token_list(
        cls, tokens: Sequence[str], token_ids: Sequence[int | None] = ()
    ) -> "RecipientSet":
        ids = tuple(token_ids) if token_ids else (None,) * len(tokens)
        if len(ids) != len(tokens):
            raise ValueError("token_ids must match tokens one to one")
        return cls(channel=DeliveryChannel.TOKEN_LIST, tokens=tuple(tokens), token_ids=ids)

    @classmethod
    def topic(cls, name: str) -> "RecipientSet":
        return cls(channel=DeliveryChannel.TOPIC, name=name)

    @property
    def is_empty(self) -> bool:
        if self.channel is DeliveryChannel.TOPIC:
            return not self.name
        return not self.tokens

    @property
    def label(self) -> str:
        """Short human readable description used in attempt history."""

        if self.channel is DeliveryChannel.TOPIC:
            return self.name or ""
        return f"{len(self.tokens)} token(s)"

    def token_id_map(self) -> dict[str, int]:
        return {
            token: token_id
            for token, token_id in zip(self.tokens, self.token_ids)
            if token_id is not None
        }


@dataclass(frozen=True)
class DeliveryOutcome:
    """Outcome of one send to one token or one topic."""

    channel: DeliveryChannel
    target: str
    status: OutcomeStatus
    error_code: str | None = None
    message_id: str | None = None

    @property
    def delivered(self) -> bool:
        return self.status is OutcomeStatus.DELIVERED

    @property
    def failed(self) -> bool:
        return self.status is OutcomeStatus.FAILED

    @classmethod
    def success(
        cls, channel: DeliveryChannel, target: str, message_id: str | None = None
    ) -> "DeliveryOutcome":
        return cls(channel, target, OutcomeStatus.DELIVERED, message_id=message_id)

    @classmethod
    def accepted(
        cls, channel: DeliveryChannel, target: str, message_id: str | None = None
    ) -> "DeliveryOutcome":
        return cls(channel, target, OutcomeStatus.ACCEPTED, message_id=message_id)

    @classmethod
    def failure(
        cls, channel: DeliveryChannel, target: str, error_code: str
    ) -> "DeliveryOutcome":
        return cls(channel, target, OutcomeStatus.FAILED, error_code=error_code)

    @classmethod
    def nobody_reached(cls, channel: DeliveryChannel, target: str) -> "DeliveryOutcome":
        return cls(channel, target, OutcomeStatus.EMPTY)


@dataclass(frozen=True)
class DeliveryAttempt:
    """Summary of one channel tried while dispatching a notification."""

    channel: DeliveryChannel
    target: str
    recipients: int
    success_count: int
    failure_count: int
    # Part of success_count the provider accepted without confirming reach.
    unconfirmed_count: int = 0

    @property
    def confirmed_count(self) -> int:
        return self.success_count - self.unconfirmed_count

    @property
    def empty(self) -> bool:
        return self.success_count == 0 and self.failure_count == 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "channel": self.channel.value,
            "target": self.target,
            "recipients": self.recipients,
            "success_count": self.success_count,
            "failure_count": self.failure_count,
            "unconfirmed_count": self.unconfirmed_count,
            "empty": self.empty,
        }


@dataclass
class DeliveryResult:
    """Honest summary of one dispatch of one notification."""

    notification_id: int | None
    channel_attempted: DeliveryChannel | None
    success_count: int
    failure_count: int
    fallback_used: bool
    errors: list[ErrorKind] = field(default_factory=list)
    attempts: list[DeliveryAttempt] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.success_count > 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "notification_id": self.notification_id,
            "channel_attempted": (
                self.channel_attempted.value if self.channel_attempted else None
            ),
            "success_count": self.success_count,
            "failure_count": self.failure_count,
            "fallback_used": self.fallback_used,
            "success": self.success,
            "errors": [error.value for error in self.errors],
            "attempts": [attempt.to_dict() for attempt in self.attempts],
        }


# A result always carries its attempt history.
DeliveryReport = DeliveryResult


__all__ = [
    "DeliveryAttempt",
    "DeliveryChannel",
    "DeliveryOutcome",
    "DeliveryReport",
    "DeliveryResult",
    "ErrorKind",
    "OutcomeStatus",
    "RecipientSet",
]
