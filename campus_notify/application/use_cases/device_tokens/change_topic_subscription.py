"""Use case for explicitly joining or leaving a registration's topic."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from campus_notify.domain.entities import DeviceToken
from campus_notify.domain.errors import ProviderUnavailableError
from campus_notify.infrastructure.push import (
    PushProvider,
    TopicManager,
    subscribe_tokens,
    unsubscribe_tokens,
)
from campus_notify.utils import shorten_token

from .set_token_active import get_device_token

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubscriptionChange:
    device_token: DeviceToken
    subscribed: bool
    changed: bool


def change_topic_subscription(
    session: Session,
    token_id: int,
    *,
    subscribe: bool,
    provider: PushProvider | None,
) -> SubscriptionChange:
    """Subscribe or unsubscribe one registration from its topic label.

    Revoked registrations may leave their topic but never join one.
    """

    if provider is None or not provider.is_available():
        raise ProviderUnavailableError("Push provider is not configured")
    if not isinstance(provider, TopicManager):
        raise ProviderUnavailableError("Push provider does not manage topic subscriptions")

    device_token = get_device_token(session, token_id)
    if not device_token.topic:
        msg = "El token no tiene un tema asignado"
        raise ValueError(msg)
    if subscribe and not device_token.is_active:
        msg = "No se puede suscribir un token inactivo"
        raise ValueError(msg)

    if subscribe:
        changed = subscribe_tokens(provider, [device_token]) > 0
    else:
        changed = unsubscribe_tokens(provider, [device_token]) > 0
    logger.info(
        "%s token %s %s topic %s",
        "Subscribed" if subscribe else "Unsubscribed",
        shorten_token(device_token.token),
        "to" if subscribe else "from",
        device_token.topic,
    )
    return SubscriptionChange(device_token=device_token, subscribed=subscribe, changed=changed)
