"""Use cases that hand notifications to the delivery engine."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from campus_notify.application.delivery import AudienceResolver, FallbackCoordinator
from campus_notify.config import Settings, get_settings
from campus_notify.domain.entities import DeliveryReport, ErrorKind, RecipientSet
from campus_notify.domain.errors import InvalidSelectorError, ProviderUnavailableError
from campus_notify.infrastructure.push import PushProvider
from campus_notify.infrastructure.repositories import NotificationRepository
from campus_notify.utils import now_in_app_timezone
from .get_notification import get_notification

logger = logging.getLogger(__name__)


def _ensure_provider(provider: PushProvider | None) -> PushProvider:
    if provider is None:
        raise ProviderUnavailableError("Push provider is not configured")
    if not provider.is_available():
        raise ProviderUnavailableError("Push provider is unavailable")
    return provider


def dispatch_notification(
    session: Session,
    notification_id: int,
    *,
    provider: PushProvider | None,
    settings: Settings | None = None,
) -> DeliveryReport:
    """Deliver a notification now and record the outcome on its row.

    ``issued_at`` is stamped once the provider is known to be usable, before
    any send, so a failed or invalid dispatch still counts as attempted. Every
    call resends; callers that must not repeat a delivery check ``issued_at``.
    """

    settings = settings or get_settings()
    notification = get_notification(session, notification_id)
    coordinator = FallbackCoordinator.from_session(
        session, _ensure_provider(provider), settings
    )

    repository = NotificationRepository(session)
    notification = repository.mark_issued(notification_id, now_in_app_timezone())
    try:
        report = coordinator.dispatch_with_fallback(notification)
    except InvalidSelectorError:
        repository.record_delivery(
            notification_id,
            {
                "notification_id": notification_id,
                "success": False,
                "errors": [ErrorKind.INVALID_SELECTOR.value],
            },
        )
        raise

    repository.record_delivery(notification_id, report.to_dict())
    return report


def dispatch_due_notifications(
    session: Session,
    *,
    provider: PushProvider | None,
    now: datetime | None = None,
    tenant_id: str | None = None,
    limit: int | None = 100,
    settings: Settings | None = None,
) -> list[DeliveryReport]:
    """Dispatch every pending notification whose scheduled instant has passed.

    Notifications that were already issued are never picked up again.
    """

    _ensure_provider(provider)
    now = now or now_in_app_timezone()
    due = NotificationRepository(session).list_due(
        now, tenant_id=tenant_id, limit=limit
    )

    reports: list[DeliveryReport] = []
    for notification in due:
        try:
            reports.append(
                dispatch_notification(
                    session, notification.id, provider=provider, settings=settings
                )
            )
        except InvalidSelectorError as exc:
            logger.warning("Skipping notification %s: %s", notification.id, exc)
    logger.info("Dispatched %d of %d due notification(s)", len(reports), len(due))
    return reports


def resolve_notification_audience(
    session: Session, notification_id: int, *, settings: Settings | None = None
) -> RecipientSet:
    """Return the recipient set a dispatch of the notification would use."""

    notification = get_notification(session, notification_id)
    return AudienceResolver.from_session(session, settings).resolve(notification)
