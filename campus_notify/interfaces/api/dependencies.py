"""FastAPI dependency utilities."""

from collections.abc import Callable

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from campus_notify.config import Settings, get_settings
from campus_notify.domain.entities import Principal
from campus_notify.infrastructure.push import PushProvider
from campus_notify.infrastructure.security import decode_access_token

# Tokens are issued by the external auth service; only verification happens here.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/token")


def _unauthorized(detail: str = "Credenciales inválidas") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def resolve_principal(token: str) -> Principal:
    """Build the :class:`Principal` described by a bearer token."""

    try:
        payload = decode_access_token(token)
    except ValueError as exc:
        raise _unauthorized() from exc

    subject = payload.get("sub")
    role = payload.get("role")
    tenant_id = payload.get("tenant_id")
    if not isinstance(subject, str) or not subject:
        raise _unauthorized()
    if not isinstance(role, str) or not role:
        raise _unauthorized()
    if tenant_id is not None and not isinstance(tenant_id, (str, int)):
        raise _unauthorized()

    return Principal(
        subject=subject,
        role=role,
        tenant_id=str(tenant_id) if tenant_id is not None else None,
    )


def get_current_principal(token: str = Depends(oauth2_scheme)) -> Principal:
    """Return the caller authenticated by the bearer token."""

    return resolve_principal(token)


def require_roles(*roles: str) -> Callable[..., Principal]:
    """Return a dependency that only admits ``roles`` (and super admins)."""

    allowed = frozenset(roles)

    def dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.is_super_admin() or principal.role in allowed:
            return principal
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="No autorizado")

    return dependency


def ensure_tenant_access(principal: Principal, tenant_id: str | None) -> None:
    """Reject callers acting outside their own tenant."""

    if not principal.can_access_tenant(tenant_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="No autorizado")


def get_push_provider(request: Request) -> PushProvider | None:
    """Return the provider handle created at startup, if any."""

    return getattr(request.app.state, "push_provider", None)


def get_app_settings() -> Settings:
    return get_settings()
