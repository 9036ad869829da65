"""Use cases for reading, revoking and restoring a device token."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from campus_notify.domain.entities import DeviceToken
from campus_notify.domain.errors import DeviceTokenNotFoundError
from campus_notify.infrastructure.push import PushProvider, subscribe_tokens, unsubscribe_tokens
from campus_notify.infrastructure.repositories import DeviceTokenRepository
from campus_notify.utils import shorten_token

logger = logging.getLogger(__name__)


def get_device_token(session: Session, token_id: int) -> DeviceToken:
    device_token = DeviceTokenRepository(session).get(token_id)
    if device_token is None:
        msg = f"Device token with id {token_id} not found"
        raise DeviceTokenNotFoundError(msg)
    return device_token


def set_token_active(
    session: Session,
    token_id: int,
    is_active: bool,
    *,
    provider: PushProvider | None = None,
) -> DeviceToken:
    """Flip the active flag of a registration without deleting it.

    When ``provider`` manages topics, the device also leaves its topic on
    revocation and rejoins it on restore, so topic sends follow the flag.
    """

    device_token = DeviceTokenRepository(session).set_active(token_id, is_active)
    if device_token is None:
        msg = f"Device token with id {token_id} not found"
        raise DeviceTokenNotFoundError(msg)

    if is_active:
        subscribe_tokens(provider, [device_token])
    else:
        unsubscribe_tokens(provider, [device_token])
    logger.info(
        "%s device token %s",
        "Restored" if is_active else "Revoked",
        shorten_token(device_token.token),
    )
    return device_token
