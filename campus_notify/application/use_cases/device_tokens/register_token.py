"""Use cases for registering device tokens."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from campus_notify.config import Settings, get_settings
from campus_notify.domain.entities import DEVICE_KINDS, TOKEN_ROLES, DeviceToken
from campus_notify.infrastructure.push import PushProvider, subscribe_tokens
from campus_notify.infrastructure.repositories import DeviceTokenRepository
from campus_notify.utils import shorten_token

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenRegistration:
    """Stored registration and whether it was newly created."""

    device_token: DeviceToken
    created: bool


def _clean(value: str | None, field_name: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        msg = f"El campo '{field_name}' es obligatorio"
        raise ValueError(msg)
    return cleaned


def register_token(
    session: Session,
    *,
    token: str,
    owner_id: str,
    tenant_id: str,
    role: str,
    topic: str | None = None,
    device_kind: str | None = None,
    settings: Settings | None = None,
) -> TokenRegistration:
    """Register ``token`` or update the registration that already owns it.

    The topic label defaults to the prefixed tenant topic.
    """

    settings = settings or get_settings()
    token = _clean(token, "token")
    owner_id = _clean(owner_id, "owner_id")
    tenant_id = _clean(tenant_id, "tenant_id")
    role = _clean(role, "role")
    if role not in TOKEN_ROLES:
        msg = f"Rol no soportado: {role}"
        raise ValueError(msg)
    if device_kind is not None and device_kind not in DEVICE_KINDS:
        msg = f"Tipo de dispositivo no soportado: {device_kind}"
        raise ValueError(msg)

    repository = DeviceTokenRepository(session)
    device_token, created = repository.upsert(
        token=token,
        owner_id=owner_id,
        tenant_id=tenant_id,
        role=role,
        topic=(topic or "").strip() or settings.tenant_topic(tenant_id),
        device_kind=device_kind,
    )
    logger.info(
        "%s device token %s for owner %s in tenant %s",
        "Registered" if created else "Updated",
        shorten_token(device_token.token),
        owner_id,
        tenant_id,
    )
    return TokenRegistration(device_token=device_token, created=created)


def subscribe_token_to_topic(
    provider: PushProvider | None, device_token: DeviceToken
) -> bool:
    """Subscribe the registration to its topic when the provider supports it.

    Subscription is best effort: failures are logged and reported as ``False``.
    """

    return subscribe_tokens(provider, [device_token]) > 0
