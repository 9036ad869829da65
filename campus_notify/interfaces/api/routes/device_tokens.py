"""Routes for the device token registry."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from campus_notify.application.use_cases.device_tokens import (
    change_topic_subscription as change_topic_subscription_uc,
    get_device_token as get_device_token_uc,
    list_device_tokens as list_device_tokens_uc,
    register_token as register_token_uc,
    resubscribe_tenant_tokens as resubscribe_tenant_tokens_uc,
    set_token_active as set_token_active_uc,
    subscribe_token_to_topic,
)
from campus_notify.config import Settings
from campus_notify.domain.entities import (
    SCHOOL_ADMIN_ROLE,
    DeviceToken,
    Principal,
)
from campus_notify.domain.errors import DeviceTokenNotFoundError, ProviderUnavailableError
from campus_notify.infrastructure.database import get_db
from campus_notify.infrastructure.push import PushProvider
from campus_notify.interfaces.api.dependencies import (
    ensure_tenant_access,
    get_app_settings,
    get_current_principal,
    get_push_provider,
    require_roles,
)
from campus_notify.interfaces.api.schemas import (
    DeviceTokenRead,
    DeviceTokenRegister,
    DeviceTokenRegistrationResponse,
    DeviceTokenStatusUpdate,
    TenantResubscribeResponse,
    TopicSubscriptionResponse,
)

router = APIRouter(prefix="/device-tokens", tags=["device-tokens"])


def _device_token_to_schema(device_token: DeviceToken) -> DeviceTokenRead:
    return DeviceTokenRead(
        id=device_token.id or 0,
        owner_id=device_token.owner_id,
        tenant_id=device_token.tenant_id,
        role=device_token.role,
        token=device_token.token,
        topic=device_token.topic,
        device_kind=device_token.device_kind,
        is_active=device_token.is_active,
        created_at=device_token.created_at,
        updated_at=device_token.updated_at,
    )


def _ensure_can_manage_owner(principal: Principal, tenant_id: str, owner_id: str) -> None:
    ensure_tenant_access(principal, tenant_id)
    if principal.is_super_admin() or principal.role == SCHOOL_ADMIN_ROLE:
        return
    if principal.subject != owner_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="No autorizado")


@router.post("", response_model=DeviceTokenRegistrationResponse)
def register_device_token(
    payload: DeviceTokenRegister,
    response: Response,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    provider: PushProvider | None = Depends(get_push_provider),
    settings: Settings = Depends(get_app_settings),
) -> DeviceTokenRegistrationResponse:
    """Register a push token, updating the existing registration if any."""

    _ensure_can_manage_owner(principal, payload.tenant_id, payload.owner_id)
    try:
        registration = register_token_uc(
            db,
            token=payload.token,
            owner_id=payload.owner_id,
            tenant_id=payload.tenant_id,
            role=payload.role,
            topic=payload.topic,
            device_kind=payload.device_kind,
            settings=settings,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    response.status_code = (
        status.HTTP_201_CREATED if registration.created else status.HTTP_200_OK
    )
    subscribed = subscribe_token_to_topic(provider, registration.device_token)
    return DeviceTokenRegistrationResponse(
        device_token=_device_token_to_schema(registration.device_token),
        created=registration.created,
        subscribed=subscribed,
    )


@router.get("", response_model=list[DeviceTokenRead])
def list_device_tokens(
    tenant_id: str | None = Query(default=None),
    owner_id: str | None = Query(default=None),
    role: str | None = Query(default=None),
    topic: str | None = Query(default=None),
    is_active: bool | None = Query(default=True),
    limit: int = Query(default=500, ge=1, le=5000),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_roles(SCHOOL_ADMIN_ROLE)),
) -> list[DeviceTokenRead]:
    tenant_id = tenant_id or principal.tenant_id
    if not principal.is_super_admin():
        ensure_tenant_access(principal, tenant_id)
    tokens = list_device_tokens_uc(
        db,
        tenant_id=tenant_id,
        owner_id=owner_id,
        role=role,
        topic=topic,
        is_active=is_active,
        limit=limit,
    )
    return [_device_token_to_schema(device_token) for device_token in tokens]


@router.patch("/{token_id}/status", response_model=DeviceTokenRead)
def update_device_token_status(
    token_id: int,
    payload: DeviceTokenStatusUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    provider: PushProvider | None = Depends(get_push_provider),
) -> DeviceTokenRead:
    """Soft revoke or restore a registration and its topic subscription."""

    try:
        current = get_device_token_uc(db, token_id)
        _ensure_can_manage_owner(principal, current.tenant_id, current.owner_id)
        updated = set_token_active_uc(
            db, token_id, payload.is_active, provider=provider
        )
    except DeviceTokenNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return _device_token_to_schema(updated)


def _change_subscription(
    db: Session,
    principal: Principal,
    provider: PushProvider | None,
    token_id: int,
    subscribe: bool,
) -> TopicSubscriptionResponse:
    try:
        current = get_device_token_uc(db, token_id)
        _ensure_can_manage_owner(principal, current.tenant_id, current.owner_id)
        change = change_topic_subscription_uc(
            db, token_id, subscribe=subscribe, provider=provider
        )
    except DeviceTokenNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ProviderUnavailableError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)
        ) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return TopicSubscriptionResponse(
        token_id=token_id,
        topic=change.device_token.topic or "",
        subscribed=change.subscribed,
        changed=change.changed,
    )


@router.post("/{token_id}/subscribe", response_model=TopicSubscriptionResponse)
def subscribe_device_token(
    token_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    provider: PushProvider | None = Depends(get_push_provider),
) -> TopicSubscriptionResponse:
    """Join the registration's topic again."""

    return _change_subscription(db, principal, provider, token_id, subscribe=True)


@router.post("/{token_id}/unsubscribe", response_model=TopicSubscriptionResponse)
def unsubscribe_device_token(
    token_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    provider: PushProvider | None = Depends(get_push_provider),
) -> TopicSubscriptionResponse:
    """Leave the registration's topic without revoking the token."""

    return _change_subscription(db, principal, provider, token_id, subscribe=False)


@router.post("/tenants/{tenant_id}/resubscribe", response_model=TenantResubscribeResponse)
def resubscribe_tenant(
    tenant_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_roles(SCHOOL_ADMIN_ROLE)),
    provider: PushProvider | None = Depends(get_push_provider),
    settings: Settings = Depends(get_app_settings),
) -> TenantResubscribeResponse:
    """Subscribe every active token of the tenant to its broadcast topic."""

    ensure_tenant_access(principal, tenant_id)
    try:
        summary = resubscribe_tenant_tokens_uc(
            db, tenant_id, provider=provider, settings=settings
        )
    except ProviderUnavailableError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)
        ) from exc
    return TenantResubscribeResponse(
        tenant_id=summary.tenant_id,
        topic=summary.topic,
        token_count=summary.token_count,
        subscribed_count=summary.subscribed_count,
    )
