"""Tests for the device token registration use cases."""

from __future__ import annotations

import pytest

from campus_notify.application.delivery import AudienceResolver
from campus_notify.application.use_cases.device_tokens import (
    list_device_tokens,
    register_token,
    resubscribe_tenant_tokens,
    set_token_active,
    subscribe_token_to_topic,
)
from campus_notify.domain.entities import Notification, NotificationKind
from campus_notify.domain.errors import DeviceTokenNotFoundError, ProviderUnavailableError


def _register(session, settings, token="device-1", **overrides):
    values = {
        "owner_id": "alice",
        "tenant_id": "school-1",
        "role": "student",
    }
    values.update(overrides)
    return register_token(session, token=token, settings=settings, **values)


def _direct_tokens(session, settings, owner_id="alice") -> tuple[str, ...]:
    notification = Notification(
        id=1,
        kind=NotificationKind.DIRECT,
        tenant_id="school-1",
        title="",
        body="Hi",
        owner_id=owner_id,
    )
    return AudienceResolver.from_session(session, settings).resolve(notification).tokens


def test_registering_twice_updates_a_single_record(session, settings):
    first = _register(session, settings)
    second = _register(session, settings, role="parent", device_kind="ios")

    assert first.created is True
    assert second.created is False
    assert second.device_token.id == first.device_token.id
    assert second.device_token.role == "parent"
    assert second.device_token.device_kind == "ios"
    assert len(list_device_tokens(session, tenant_id="school-1", is_active=None)) == 1


def test_topic_defaults_to_the_prefixed_tenant_topic(session, settings):
    registration = _register(session, settings)

    assert registration.device_token.topic == "tenant_school-1"
    assert registration.device_token.device_kind == "android"
    assert registration.device_token.is_active is True


def test_explicit_topic_is_kept(session, settings):
    registration = _register(session, settings, topic="school-1")

    assert registration.device_token.topic == "school-1"


@pytest.mark.parametrize(
    "overrides",
    [
        {"role": "janitor"},
        {"device_kind": "toaster"},
        {"owner_id": "  "},
        {"tenant_id": ""},
    ],
)
def test_invalid_registration_is_rejected(session, settings, overrides):
    with pytest.raises(ValueError):
        _register(session, settings, **overrides)


def test_blank_token_is_rejected(session, settings):
    with pytest.raises(ValueError):
        _register(session, settings, token="   ")


def test_deactivation_removes_token_from_resolution(session, settings):
    registration = _register(session, settings)
    token_id = registration.device_token.id

    deactivated = set_token_active(session, token_id, False)
    assert deactivated.is_active is False
    assert _direct_tokens(session, settings) == ()
    assert len(list_device_tokens(session, tenant_id="school-1", is_active=False)) == 1

    set_token_active(session, token_id, True)
    assert _direct_tokens(session, settings) == ("device-1",)


def test_revoked_token_leaves_its_topic_until_restored(session, settings, make_provider):
    registration = _register(session, settings)
    provider = make_provider("topics")
    subscribe_token_to_topic(provider, registration.device_token)
    token_id = registration.device_token.id

    set_token_active(session, token_id, False, provider=provider)
    assert provider.subscriptions["tenant_school-1"] == set()
    assert provider.topic_subscribers["tenant_school-1"] == 0

    set_token_active(session, token_id, True, provider=provider)
    assert provider.subscriptions["tenant_school-1"] == {"device-1"}


def test_status_change_survives_a_failing_topic_provider(session, settings, make_provider):
    registration = _register(session, settings)
    provider = make_provider("topics")

    def refuse(tokens, topic):
        raise RuntimeError("topic service down")

    provider.unsubscribe_from_topic = refuse

    revoked = set_token_active(session, registration.device_token.id, False, provider=provider)

    assert revoked.is_active is False


def test_reregistering_reactivates_a_revoked_token(session, settings):
    registration = _register(session, settings)
    set_token_active(session, registration.device_token.id, False)

    again = _register(session, settings)

    assert again.created is False
    assert again.device_token.is_active is True


def test_unknown_token_id_raises(session):
    with pytest.raises(DeviceTokenNotFoundError):
        set_token_active(session, 999, False)


def test_list_filters_by_owner_role_and_topic(session, settings):
    _register(session, settings, token="a", owner_id="alice")
    _register(session, settings, token="b", owner_id="bob", role="teacher")
    _register(session, settings, token="c", owner_id="carol", topic="school-1")

    assert [t.token for t in list_device_tokens(session, owner_id="bob")] == ["b"]
    assert [t.token for t in list_device_tokens(session, role="teacher")] == ["b"]
    assert [t.token for t in list_device_tokens(session, topic="school-1")] == ["c"]


def test_subscription_requires_topic_management(session, settings, make_provider):
    registration = _register(session, settings)
    topics_provider = make_provider("topics")

    assert subscribe_token_to_topic(topics_provider, registration.device_token) is True
    assert topics_provider.subscriptions["tenant_school-1"] == {"device-1"}
    assert subscribe_token_to_topic(make_provider(), registration.device_token) is False
    assert subscribe_token_to_topic(None, registration.device_token) is False


def test_resubscribe_subscribes_active_tenant_tokens(session, settings, make_provider):
    _register(session, settings, token="a", owner_id="alice")
    _register(session, settings, token="b", owner_id="bob")
    revoked = _register(session, settings, token="c", owner_id="carol")
    set_token_active(session, revoked.device_token.id, False)
    _register(session, settings, token="d", owner_id="dave", tenant_id="school-2")
    provider = make_provider("topics")

    summary = resubscribe_tenant_tokens(session, "school-1", provider=provider, settings=settings)

    assert summary.topic == "tenant_school-1"
    assert (summary.token_count, summary.subscribed_count) == (2, 2)
    assert provider.subscriptions["tenant_school-1"] == {"a", "b"}


@pytest.mark.parametrize("provider_kind", ["plain", None])
def test_resubscribe_needs_a_topic_capable_provider(
    session, settings, make_provider, provider_kind
):
    provider = make_provider(provider_kind) if provider_kind else None

    with pytest.raises(ProviderUnavailableError):
        resubscribe_tenant_tokens(session, "school-1", provider=provider, settings=settings)
