"""Keep provider-side topic subscriptions in step with the token registry."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable

from campus_notify.domain.entities import DeviceToken

from .base import PushProvider, TopicManager

logger = logging.getLogger(__name__)


def _by_topic(device_tokens: Iterable[DeviceToken]) -> dict[str, list[str]]:
    grouped: dict[str, list[str]] = defaultdict(list)
    for device_token in device_tokens:
        if device_token.topic:
            grouped[device_token.topic].append(device_token.token)
    return grouped


def subscribe_tokens(
    provider: PushProvider | None, device_tokens: Iterable[DeviceToken]
) -> int:
    """Subscribe each registration to its topic label.

    Best effort: providers without topic management are skipped and provider
    errors are logged. Returns how many subscriptions the provider accepted.
    """

    if not isinstance(provider, TopicManager):
        return 0
    subscribed = 0
    for topic, tokens in _by_topic(device_tokens).items():
        try:
            subscribed += provider.subscribe_to_topic(tokens, topic)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Could not subscribe %d token(s) to topic %s: %s", len(tokens), topic, exc
            )
    return subscribed


def unsubscribe_tokens(
    provider: PushProvider | None, device_tokens: Iterable[DeviceToken]
) -> int:
    """Remove each registration from its topic label, best effort."""

    if not isinstance(provider, TopicManager):
        return 0
    removed = 0
    for topic, tokens in _by_topic(device_tokens).items():
        try:
            removed += provider.unsubscribe_from_topic(tokens, topic)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Could not unsubscribe %d token(s) from topic %s: %s",
                len(tokens),
                topic,
                exc,
            )
    return removed


__all__ = ["subscribe_tokens", "unsubscribe_tokens"]
