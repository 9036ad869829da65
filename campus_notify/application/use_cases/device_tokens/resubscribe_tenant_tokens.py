"""Use case for re-subscribing a tenant's devices to its broadcast topic."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from campus_notify.config import Settings, get_settings
from campus_notify.domain.errors import ProviderUnavailableError
from campus_notify.infrastructure.push import PushProvider, TopicManager
from campus_notify.infrastructure.repositories import DeviceTokenRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResubscribeSummary:
    tenant_id: str
    topic: str
    token_count: int
    subscribed_count: int


def resubscribe_tenant_tokens(
    session: Session,
    tenant_id: str,
    *,
    provider: PushProvider | None,
    settings: Settings | None = None,
) -> ResubscribeSummary:
    """Subscribe every active token of ``tenant_id`` to the tenant topic."""

    settings = settings or get_settings()
    if provider is None or not provider.is_available():
        raise ProviderUnavailableError("Push provider is not configured")
    if not isinstance(provider, TopicManager):
        raise ProviderUnavailableError("Push provider does not manage topic subscriptions")

    topic = settings.tenant_topic(tenant_id)
    tokens = [
        device_token.token
        for device_token in DeviceTokenRepository(session).list_active_for_tenant(tenant_id)
    ]
    subscribed = provider.subscribe_to_topic(tokens, topic) if tokens else 0
    logger.info(
        "Resubscribed %d of %d token(s) of tenant %s to %s",
        subscribed,
        len(tokens),
        tenant_id,
        topic,
    )
    return ResubscribeSummary(
        tenant_id=tenant_id,
        topic=topic,
        token_count=len(tokens),
        subscribed_count=subscribed,
    )
