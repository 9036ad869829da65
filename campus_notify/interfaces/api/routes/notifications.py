"""Routes for creating and delivering notifications."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from campus_notify.application.use_cases.notifications import (
    create_notification as create_notification_uc,
    dispatch_due_notifications as dispatch_due_notifications_uc,
    dispatch_notification as dispatch_notification_uc,
    get_notification as get_notification_uc,
    list_notifications as list_notifications_uc,
    resolve_notification_audience as resolve_notification_audience_uc,
)
from campus_notify.config import Settings
from campus_notify.domain.entities import (
    SCHOOL_ADMIN_ROLE,
    SERVICE_ROLE,
    TEACHER_ROLE,
    DeliveryChannel,
    DeliveryReport,
    Notification,
    NotificationKind,
    Principal,
    RecipientSet,
)
from campus_notify.domain.errors import (
    InvalidSelectorError,
    NotificationNotFoundError,
    ProviderUnavailableError,
)
from campus_notify.infrastructure.database import get_db
from campus_notify.infrastructure.push import PushProvider
from campus_notify.interfaces.api.dependencies import (
    ensure_tenant_access,
    get_app_settings,
    get_push_provider,
    require_roles,
)
from campus_notify.interfaces.api.schemas import (
    AudienceRead,
    DeliveryReportRead,
    NotificationCreate,
    NotificationCreateResponse,
    NotificationRead,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])

_senders = require_roles(SCHOOL_ADMIN_ROLE, TEACHER_ROLE)


def _notification_to_schema(notification: Notification) -> NotificationRead:
    return NotificationRead(
        id=notification.id or 0,
        kind=notification.kind.value,
        tenant_id=notification.tenant_id,
        title=notification.title,
        body=notification.body,
        owner_id=notification.owner_id,
        class_id=notification.class_id,
        role=notification.role,
        schedule_at=notification.schedule_at,
        issued_at=notification.issued_at,
        created_by=notification.created_by,
        created_at=notification.created_at,
        data=notification.data or {},
        last_delivery=notification.last_delivery,
    )


def _report_to_schema(report: DeliveryReport) -> DeliveryReportRead:
    return DeliveryReportRead.model_validate(report.to_dict())


def _ensure_can_send(principal: Principal, kind: NotificationKind | str) -> None:
    if kind == NotificationKind.ANNOUNCEMENT and principal.role == TEACHER_ROLE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Los docentes no pueden enviar anuncios",
        )


def _load_notification(
    db: Session, notification_id: int, principal: Principal
) -> Notification:
    try:
        notification = get_notification_uc(db, notification_id)
    except NotificationNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    ensure_tenant_access(principal, notification.tenant_id)
    return notification


def _dispatch(
    db: Session,
    notification_id: int,
    provider: PushProvider | None,
    settings: Settings,
) -> DeliveryReport:
    try:
        return dispatch_notification_uc(
            db, notification_id, provider=provider, settings=settings
        )
    except InvalidSelectorError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    except ProviderUnavailableError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)
        ) from exc
    except NotificationNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@router.post(
    "",
    response_model=NotificationCreateResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_notification(
    payload: NotificationCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(_senders),
    provider: PushProvider | None = Depends(get_push_provider),
    settings: Settings = Depends(get_app_settings),
) -> NotificationCreateResponse:
    """Create a notification and deliver it unless it is scheduled."""

    ensure_tenant_access(principal, payload.tenant_id)
    _ensure_can_send(principal, payload.kind)
    try:
        notification = create_notification_uc(
            db,
            kind=payload.kind,
            tenant_id=payload.tenant_id,
            title=payload.title,
            body=payload.body,
            owner_id=payload.owner_id,
            class_id=payload.class_id,
            role=payload.role,
            schedule_at=payload.schedule_at,
            created_by=principal.subject,
            data=payload.data,
        )
    except InvalidSelectorError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    delivery: DeliveryReportRead | None = None
    if notification.schedule_at is None or payload.send_immediately:
        report = _dispatch(db, notification.id, provider, settings)
        delivery = _report_to_schema(report)
        notification = get_notification_uc(db, notification.id)

    return NotificationCreateResponse(
        notification=_notification_to_schema(notification),
        delivery=delivery,
    )


@router.get("", response_model=list[NotificationRead])
def list_notifications(
    tenant_id: str | None = Query(default=None),
    limit: int = Query(default=50, ge=1, le=500),
    db: Session = Depends(get_db),
    principal: Principal = Depends(_senders),
) -> list[NotificationRead]:
    """Return the most recent notifications of a tenant."""

    tenant_id = tenant_id or principal.tenant_id
    ensure_tenant_access(principal, tenant_id)
    notifications = list_notifications_uc(db, tenant_id=tenant_id, limit=limit)
    return [_notification_to_schema(notification) for notification in notifications]


@router.post("/dispatch-due", response_model=list[DeliveryReportRead])
def dispatch_due_notifications(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_roles(SCHOOL_ADMIN_ROLE, SERVICE_ROLE)),
    provider: PushProvider | None = Depends(get_push_provider),
    settings: Settings = Depends(get_app_settings),
) -> list[DeliveryReportRead]:
    """Dispatch scheduled notifications whose time has come.

    School administrators only sweep their own tenant.
    """

    tenant_id = None
    if principal.role == SCHOOL_ADMIN_ROLE:
        tenant_id = principal.tenant_id
        ensure_tenant_access(principal, tenant_id)
    try:
        reports = dispatch_due_notifications_uc(
            db, provider=provider, tenant_id=tenant_id, settings=settings
        )
    except ProviderUnavailableError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)
        ) from exc
    return [_report_to_schema(report) for report in reports]


@router.get("/{notification_id}", response_model=NotificationRead)
def get_notification(
    notification_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(_senders),
) -> NotificationRead:
    return _notification_to_schema(_load_notification(db, notification_id, principal))


@router.post("/{notification_id}/dispatch", response_model=DeliveryReportRead)
def dispatch_notification(
    notification_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(_senders),
    provider: PushProvider | None = Depends(get_push_provider),
    settings: Settings = Depends(get_app_settings),
) -> DeliveryReportRead:
    """Deliver a notification now, even if it was dispatched before."""

    notification = _load_notification(db, notification_id, principal)
    _ensure_can_send(principal, notification.kind)
    return _report_to_schema(_dispatch(db, notification_id, provider, settings))


@router.get("/{notification_id}/audience", response_model=AudienceRead)
def get_notification_audience(
    notification_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(_senders),
    settings: Settings = Depends(get_app_settings),
) -> AudienceRead:
    """Describe the recipients a dispatch would target, without sending."""

    _load_notification(db, notification_id, principal)
    try:
        recipients: RecipientSet = resolve_notification_audience_uc(
            db, notification_id, settings=settings
        )
    except InvalidSelectorError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    return AudienceRead(
        channel=recipients.channel.value,
        label=recipients.label,
        token_count=len(recipients.tokens),
        topic=recipients.name if recipients.channel is DeliveryChannel.TOPIC else None,
    )
