"""Orchestrate resolution, dispatch and channel escalation for one notification."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from campus_notify.config import Settings, get_settings
from campus_notify.domain.entities import (
    DeliveryAttempt,
    DeliveryChannel,
    DeliveryOutcome,
    DeliveryReport,
    Notification,
    NotificationKind,
    NotificationMessage,
    RecipientSet,
)
from campus_notify.domain.errors import ProviderUnavailableError
from campus_notify.infrastructure.push import PushProvider, unsubscribe_tokens
from campus_notify.infrastructure.repositories import DeviceTokenRepository

from .aggregator import aggregate, summarize_attempt
from .dispatcher import DeliveryDispatcher
from .resolver import AudienceResolver

logger = logging.getLogger(__name__)

UNREGISTERED_ERROR = "unregistered"

_TARGET_DATA_KEYS: dict[NotificationKind, tuple[str, str]] = {
    NotificationKind.DIRECT: ("ownerId", "owner_id"),
    NotificationKind.CLASS: ("classId", "class_id"),
    NotificationKind.ROLE: ("role", "role"),
}


def build_device_data(notification: Notification) -> dict[str, str]:
    """Return the string map delivered to devices alongside the message."""

    data = {
        str(key): str(value)
        for key, value in (notification.data or {}).items()
        if value is not None
    }
    data["notificationId"] = "" if notification.id is None else str(notification.id)
    data["type"] = notification.kind.value
    data["tenantId"] = notification.tenant_id
    target = _TARGET_DATA_KEYS.get(notification.kind)
    if target is not None:
        data_key, attribute = target
        data[data_key] = str(getattr(notification, attribute) or "")
    return data


class FallbackCoordinator:
    """Deliver a notification, escalating to topics when tokens yield nothing.

    Precise kinds (direct, class, role) are dispatched once against their token
    list. Announcements walk the resolver's plan: the tenant's tokens first and,
    only when that list is empty, topic-labelled tokens and both accepted topic
    names until one of them is known to have reached somebody. A topic send the
    provider merely accepted does not stop the walk.
    """

    def __init__(
        self,
        resolver: AudienceResolver,
        dispatcher: DeliveryDispatcher,
        *,
        tokens: DeviceTokenRepository | None = None,
        deactivate_unregistered: bool = True,
    ) -> None:
        self.resolver = resolver
        self.dispatcher = dispatcher
        self.tokens = tokens
        self.deactivate_unregistered = deactivate_unregistered

    @classmethod
    def from_session(
        cls,
        session: Session,
        provider: PushProvider | None,
        settings: Settings | None = None,
    ) -> "FallbackCoordinator":
        """Wire the engine for one database session and provider handle."""

        settings = settings or get_settings()
        if provider is None:
            raise ProviderUnavailableError("Push provider is not configured")
        return cls(
            AudienceResolver.from_session(session, settings),
            DeliveryDispatcher.from_settings(provider, settings),
            tokens=DeviceTokenRepository(session),
            deactivate_unregistered=settings.deactivate_unregistered_tokens,
        )

    def dispatch_with_fallback(self, notification: Notification) -> DeliveryReport:
        if not self.dispatcher.provider.is_available():
            raise ProviderUnavailableError("Push provider is unavailable")

        first, *fallbacks = self.resolver.plan(notification)
        message = notification.message
        data = build_device_data(notification)
        stale_token_ids: list[int] = []

        attempts = [self._attempt(first, message, data, stale_token_ids)]
        fallback_used = first.is_empty and bool(fallbacks)
        if fallback_used:
            for candidate in fallbacks:
                attempt = self._attempt(candidate, message, data, stale_token_ids)
                attempts.append(attempt)
                if attempt.confirmed_count > 0:
                    break

        self._revoke(stale_token_ids)
        report = aggregate(notification.id, attempts, fallback_used=fallback_used)
        logger.info(
            "Notification %s (%s) dispatched: %d delivered, %d failed, "
            "fallback=%s, errors=%s",
            notification.id,
            notification.kind.value,
            report.success_count,
            report.failure_count,
            report.fallback_used,
            [error.value for error in report.errors],
        )
        return report

    def _attempt(
        self,
        recipients: RecipientSet,
        message: NotificationMessage,
        data: dict[str, str],
        stale_token_ids: list[int],
    ) -> DeliveryAttempt:
        if recipients.is_empty:
            return summarize_attempt(recipients, [])

        outcomes = self.dispatcher.dispatch(recipients, message, data)
        if recipients.channel is DeliveryChannel.TOKEN_LIST:
            stale_token_ids.extend(self._unregistered_ids(recipients, outcomes))
        return summarize_attempt(recipients, outcomes)

    @staticmethod
    def _unregistered_ids(
        recipients: RecipientSet, outcomes: list[DeliveryOutcome]
    ) -> list[int]:
        token_ids = recipients.token_id_map()
        return [
            token_ids[outcome.target]
            for outcome in outcomes
            if outcome.error_code == UNREGISTERED_ERROR and outcome.target in token_ids
        ]

    def _revoke(self, token_ids: list[int]) -> None:
        if not token_ids or not self.deactivate_unregistered or self.tokens is None:
            return
        revoked = self.tokens.deactivate_many(token_ids)
        if revoked:
            unsubscribe_tokens(self.dispatcher.provider, revoked)
            logger.info("Deactivated %d unregistered device token(s)", len(revoked))


__all__ = ["FallbackCoordinator", "UNREGISTERED_ERROR", "build_device_data"]
