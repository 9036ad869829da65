"""Validation helpers shared by notification use cases."""

from __future__ import annotations

from dataclasses import dataclass

from campus_notify.domain.entities import TOKEN_ROLES, NotificationKind
from campus_notify.domain.errors import InvalidSelectorError


@dataclass(frozen=True)
class NotificationTarget:
    kind: NotificationKind
    tenant_id: str
    owner_id: str | None = None
    class_id: str | None = None
    role: str | None = None


def _strip(value: str | None) -> str | None:
    cleaned = (value or "").strip()
    return cleaned or None


def parse_kind(kind: NotificationKind | str) -> NotificationKind:
    if isinstance(kind, NotificationKind):
        return kind
    try:
        return NotificationKind(str(kind).strip().lower())
    except ValueError as exc:
        msg = f"Tipo de notificación no soportado: {kind}"
        raise InvalidSelectorError(msg) from exc


def validate_target(
    kind: NotificationKind | str,
    *,
    tenant_id: str | None,
    owner_id: str | None = None,
    class_id: str | None = None,
    role: str | None = None,
) -> NotificationTarget:
    """Return the normalized target for ``kind``.

    Only the field addressed by ``kind`` is kept; the others are cleared.
    """

    kind = parse_kind(kind)
    tenant = _strip(tenant_id)
    if tenant is None:
        raise InvalidSelectorError("El campo 'tenant_id' es obligatorio")

    if kind is NotificationKind.DIRECT:
        owner = _strip(owner_id)
        if owner is None:
            raise InvalidSelectorError("Las notificaciones directas requieren 'owner_id'")
        return NotificationTarget(kind=kind, tenant_id=tenant, owner_id=owner)

    if kind is NotificationKind.CLASS:
        class_ = _strip(class_id)
        if class_ is None:
            raise InvalidSelectorError("Las notificaciones de clase requieren 'class_id'")
        return NotificationTarget(kind=kind, tenant_id=tenant, class_id=class_)

    if kind is NotificationKind.ROLE:
        target_role = _strip(role)
        if target_role is None:
            raise InvalidSelectorError("Las notificaciones por rol requieren 'role'")
        if target_role not in TOKEN_ROLES:
            msg = f"Rol no soportado: {target_role}"
            raise InvalidSelectorError(msg)
        return NotificationTarget(kind=kind, tenant_id=tenant, role=target_role)

    return NotificationTarget(kind=kind, tenant_id=tenant)
