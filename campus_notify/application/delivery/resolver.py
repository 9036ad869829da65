"""Translate a notification's logical target into concrete recipients."""

from __future__ import annotations

from collections.abc import Callable, Iterable

from sqlalchemy.orm import Session

from campus_notify.config import Settings, get_settings
from campus_notify.domain.entities import (
    TOKEN_ROLES,
    DeliveryChannel,
    DeviceToken,
    Notification,
    NotificationKind,
    RecipientSet,
)
from campus_notify.domain.errors import InvalidSelectorError
from campus_notify.infrastructure.repositories import (
    ClassMemberRepository,
    DeviceTokenRepository,
)

PlanStrategy = Callable[[Notification], list[RecipientSet]]


def _token_set(tokens: Iterable[DeviceToken]) -> RecipientSet:
    unique: dict[str, int | None] = {}
    for device_token in tokens:
        unique.setdefault(device_token.token, device_token.id)
    return RecipientSet.token_list(list(unique), list(unique.values()))


def _require(value: str | None, field_name: str, kind: NotificationKind) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        msg = f"{kind.value} notifications require '{field_name}'"
        raise InvalidSelectorError(msg)
    return cleaned


class AudienceResolver:
    """Resolve notifications into :class:`RecipientSet` candidates.

    ``plan`` returns the ordered candidates the fallback coordinator walks;
    ``resolve`` returns the single set a dispatch would settle on when every
    candidate is evaluated by emptiness alone.
    """

    def __init__(
        self,
        tokens: DeviceTokenRepository,
        class_members: ClassMemberRepository,
        *,
        topic_prefix: str = "tenant_",
    ) -> None:
        self.tokens = tokens
        self.class_members = class_members
        self.topic_prefix = topic_prefix
        self._strategies: dict[NotificationKind, PlanStrategy] = {
            NotificationKind.DIRECT: self._plan_direct,
            NotificationKind.CLASS: self._plan_class,
            NotificationKind.ROLE: self._plan_role,
            NotificationKind.ANNOUNCEMENT: self._plan_announcement,
        }

    @classmethod
    def from_session(
        cls, session: Session, settings: Settings | None = None
    ) -> "AudienceResolver":
        settings = settings or get_settings()
        return cls(
            DeviceTokenRepository(session),
            ClassMemberRepository(session),
            topic_prefix=settings.topic_prefix,
        )

    def tenant_topic(self, tenant_id: str) -> str:
        return f"{self.topic_prefix}{tenant_id}"

    def plan(self, notification: Notification) -> list[RecipientSet]:
        """Return the ordered delivery candidates for ``notification``."""

        strategy = self._strategies.get(notification.kind)
        if strategy is None:
            msg = f"Unsupported notification kind: {notification.kind!r}"
            raise InvalidSelectorError(msg)
        _require(notification.tenant_id, "tenant_id", notification.kind)
        return strategy(notification)

    def resolve(self, notification: Notification) -> RecipientSet:
        """Return the recipient set the notification resolves to.

        The first non-empty token list wins; otherwise the last candidate is
        returned, which is an empty token list for precise kinds and the
        prefixed tenant topic for announcements.
        """

        candidates = self.plan(notification)
        for candidate in candidates:
            if candidate.channel is DeliveryChannel.TOKEN_LIST and not candidate.is_empty:
                return candidate
        return candidates[-1]

    def _plan_direct(self, notification: Notification) -> list[RecipientSet]:
        owner_id = _require(notification.owner_id, "owner_id", notification.kind)
        return [_token_set(self.tokens.list_active_for_owner(owner_id))]

    def _plan_class(self, notification: Notification) -> list[RecipientSet]:
        class_id = _require(notification.class_id, "class_id", notification.kind)
        owner_ids = self.class_members.list_owner_ids(
            class_id, tenant_id=notification.tenant_id
        )
        tokens = self.tokens.list_active_for_owners(
            owner_ids, tenant_id=notification.tenant_id
        )
        return [_token_set(tokens)]

    def _plan_role(self, notification: Notification) -> list[RecipientSet]:
        role = _require(notification.role, "role", notification.kind)
        if role not in TOKEN_ROLES:
            msg = f"Unknown role '{role}'"
            raise InvalidSelectorError(msg)
        return [_token_set(self.tokens.list_active_for_role(notification.tenant_id, role))]

    def _plan_announcement(self, notification: Notification) -> list[RecipientSet]:
        tenant_id = notification.tenant_id.strip()
        prefixed = self.tenant_topic(tenant_id)
        return [
            _token_set(self.tokens.list_active_for_tenant(tenant_id)),
            _token_set(self.tokens.list_active_for_topics([tenant_id, prefixed])),
            RecipientSet.topic(tenant_id),
            RecipientSet.topic(prefixed),
        ]


__all__ = ["AudienceResolver"]
