"""Fixtures wiring the FastAPI application to the in-memory test database."""

from __future__ import annotations

from collections.abc import Callable

import pytest

pytest.importorskip("fastapi")
from fastapi.testclient import TestClient

from campus_notify.infrastructure.database import get_db
from campus_notify.infrastructure.security import create_access_token
from campus_notify.interfaces.api.dependencies import get_app_settings, get_push_provider
from main import create_app


@pytest.fixture()
def client(session_factory, settings, provider):
    app = create_app()

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_push_provider] = lambda: provider
    app.dependency_overrides[get_app_settings] = lambda: settings

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def use_provider(client) -> Callable[[object], None]:
    """Swap the provider handle seen by the routes."""

    def swap(new_provider) -> None:
        client.app.dependency_overrides[get_push_provider] = lambda: new_provider

    return swap


@pytest.fixture()
def auth_headers() -> Callable[..., dict[str, str]]:
    def factory(
        role: str, subject: str = "alice", tenant_id: str | None = "school-1"
    ) -> dict[str, str]:
        claims = {"sub": subject, "role": role}
        if tenant_id is not None:
            claims["tenant_id"] = tenant_id
        return {"Authorization": f"Bearer {create_access_token(claims)}"}

    return factory
