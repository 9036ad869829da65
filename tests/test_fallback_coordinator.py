"""End-to-end tests for the fallback coordinator over an in-memory registry."""

from __future__ import annotations

import pytest
from firebase_admin import messaging

from campus_notify.application.delivery import FallbackCoordinator, build_device_data
from campus_notify.domain.entities import (
    DeliveryChannel,
    ErrorKind,
    Notification,
    NotificationKind,
)
from campus_notify.domain.errors import InvalidSelectorError, ProviderUnavailableError
from campus_notify.infrastructure.push import FirebasePushProvider
from campus_notify.infrastructure.repositories import DeviceTokenRepository


def _notification(kind: NotificationKind, **fields) -> Notification:
    fields.setdefault("tenant_id", "school-1")
    fields.setdefault("title", "")
    fields.setdefault("body", "School closes early today")
    return Notification(id=fields.pop("id", 7), kind=kind, **fields)


@pytest.fixture()
def coordinator_for(session, settings):
    def factory(provider, **overrides) -> FallbackCoordinator:
        return FallbackCoordinator.from_session(
            session, provider, settings.model_copy(update=overrides)
        )

    return factory


def test_direct_with_one_failing_token(coordinator_for, make_provider, add_token):
    add_token("token-a", owner_id="alice")
    add_token("token-b", owner_id="alice")
    provider = make_provider(failing={"token-b"})

    result = coordinator_for(provider).dispatch_with_fallback(
        _notification(NotificationKind.DIRECT, owner_id="alice")
    )

    assert (result.success_count, result.failure_count) == (1, 1)
    assert result.success is True
    assert result.fallback_used is False
    assert result.channel_attempted is DeliveryChannel.TOKEN_LIST
    assert result.errors == [ErrorKind.PARTIAL_DELIVERY_FAILURE]
    assert sorted(provider.sent_tokens) == ["token-a", "token-b"]


def test_direct_attempts_every_active_token_once(coordinator_for, make_provider, add_token):
    for index in range(6):
        add_token(f"token-{index}", owner_id="alice")
    provider = make_provider(failing={"token-1", "token-4"})

    result = coordinator_for(provider, dispatch_chunk_size=4).dispatch_with_fallback(
        _notification(NotificationKind.DIRECT, owner_id="alice")
    )

    assert result.success_count + result.failure_count == 6
    assert len(provider.token_calls) == 6


def test_announcement_with_nobody_to_reach(coordinator_for, provider):
    result = coordinator_for(provider).dispatch_with_fallback(
        _notification(NotificationKind.ANNOUNCEMENT)
    )

    assert (result.success_count, result.failure_count) == (0, 0)
    assert result.success is False
    assert result.fallback_used is True
    assert result.errors == [ErrorKind.EMPTY_AUDIENCE]
    assert provider.sent_topics == ["school-1", "tenant_school-1"]
    assert [attempt.empty for attempt in result.attempts] == [True, True, True, True]


def test_role_notification_skips_inactive_tokens(coordinator_for, provider, add_token):
    add_token("teacher-1", owner_id="t1", role="teacher")
    add_token("teacher-2", owner_id="t2", role="teacher")
    add_token("teacher-3", owner_id="t3", role="teacher", is_active=False)

    result = coordinator_for(provider).dispatch_with_fallback(
        _notification(NotificationKind.ROLE, role="teacher")
    )

    assert result.success_count + result.failure_count == 2
    assert sorted(provider.sent_tokens) == ["teacher-1", "teacher-2"]


def test_announcement_reaches_the_prefixed_topic(coordinator_for, make_provider):
    provider = make_provider(topic_subscribers={"tenant_school-1": 12})

    result = coordinator_for(provider).dispatch_with_fallback(
        _notification(NotificationKind.ANNOUNCEMENT)
    )

    assert result.fallback_used is True
    assert result.success is True
    assert result.channel_attempted is DeliveryChannel.TOPIC
    assert result.attempts[-1].target == "tenant_school-1"
    assert provider.sent_topics == ["school-1", "tenant_school-1"]


def test_bare_topic_success_stops_the_walk(coordinator_for, make_provider):
    provider = make_provider(topic_subscribers={"school-1": 3})

    result = coordinator_for(provider).dispatch_with_fallback(
        _notification(NotificationKind.ANNOUNCEMENT)
    )

    assert result.success is True
    assert provider.sent_topics == ["school-1"]
    assert result.attempts[-1].target == "school-1"


def test_accepted_topic_send_does_not_stop_the_walk(coordinator_for, monkeypatch):
    topics: list[str] = []

    def fake_send(message, dry_run=False, app=None):
        topics.append(message.topic)
        return f"projects/demo/messages/{len(topics)}"

    monkeypatch.setattr(messaging, "send", fake_send)

    result = coordinator_for(FirebasePushProvider(app=object())).dispatch_with_fallback(
        _notification(NotificationKind.ANNOUNCEMENT)
    )

    assert topics == ["school-1", "tenant_school-1"]
    assert result.success is True
    assert result.fallback_used is True
    assert result.attempts[-1].target == "tenant_school-1"
    assert [attempt.unconfirmed_count for attempt in result.attempts[2:]] == [1, 1]


def test_announcement_to_tenant_tokens_never_escalates(
    coordinator_for, make_provider, add_token
):
    add_token("token-1", owner_id="alice")
    provider = make_provider(failing={"token-1"}, topic_subscribers={"tenant_school-1": 5})

    result = coordinator_for(provider).dispatch_with_fallback(
        _notification(NotificationKind.ANNOUNCEMENT)
    )

    assert result.fallback_used is False
    assert result.errors == [ErrorKind.DELIVERY_FAILED]
    assert provider.sent_topics == []


def test_announcement_uses_topic_labelled_tokens(coordinator_for, provider, add_token):
    add_token("legacy", owner_id="alice", tenant_id="old-tenant", topic="tenant_school-1")

    result = coordinator_for(provider).dispatch_with_fallback(
        _notification(NotificationKind.ANNOUNCEMENT)
    )

    assert result.fallback_used is True
    assert result.success_count == 1
    assert provider.sent_tokens == ["legacy"]
    assert provider.sent_topics == []


def test_precise_kind_with_no_tokens_is_not_escalated(coordinator_for, make_provider):
    provider = make_provider(topic_subscribers={"tenant_school-1": 5})

    result = coordinator_for(provider).dispatch_with_fallback(
        _notification(NotificationKind.CLASS, class_id="class-1")
    )

    assert result.errors == [ErrorKind.EMPTY_AUDIENCE]
    assert result.fallback_used is False
    assert provider.sent_topics == []


def test_unregistered_tokens_are_deactivated(
    coordinator_for, make_provider, add_token, session
):
    stale = add_token("stale", owner_id="alice")
    fresh = add_token("fresh", owner_id="alice")
    provider = make_provider(unregistered={"stale"})

    coordinator_for(provider).dispatch_with_fallback(
        _notification(NotificationKind.DIRECT, owner_id="alice")
    )

    repository = DeviceTokenRepository(session)
    assert repository.get(stale.id).is_active is False
    assert repository.get(fresh.id).is_active is True


def test_deactivated_tokens_leave_their_topic(coordinator_for, make_provider, add_token):
    add_token("stale", owner_id="alice", topic="tenant_school-1")
    add_token("fresh", owner_id="alice", topic="tenant_school-1")
    provider = make_provider("topics", unregistered={"stale"})
    provider.subscriptions["tenant_school-1"] = {"stale", "fresh"}

    coordinator_for(provider).dispatch_with_fallback(
        _notification(NotificationKind.DIRECT, owner_id="alice")
    )

    assert provider.subscriptions["tenant_school-1"] == {"fresh"}


def test_unregistered_tokens_are_kept_when_revocation_is_disabled(
    coordinator_for, make_provider, add_token, session
):
    stale = add_token("stale", owner_id="alice")
    provider = make_provider(unregistered={"stale"})

    coordinator_for(provider, deactivate_unregistered_tokens=False).dispatch_with_fallback(
        _notification(NotificationKind.DIRECT, owner_id="alice")
    )

    assert DeviceTokenRepository(session).get(stale.id).is_active is True


def test_devices_receive_the_notification_metadata(coordinator_for, provider, add_token):
    add_token("token-a", owner_id="alice")

    coordinator_for(provider).dispatch_with_fallback(
        _notification(
            NotificationKind.DIRECT,
            owner_id="alice",
            data={"screen": "grades", "type": "overridden"},
        )
    )

    _, message, data = provider.token_calls[0]
    assert message.title == "Direct Notification"
    assert message.body == "School closes early today"
    assert data == {
        "screen": "grades",
        "notificationId": "7",
        "type": "direct",
        "tenantId": "school-1",
        "ownerId": "alice",
    }


@pytest.mark.parametrize(
    ("kind", "fields", "key", "value"),
    [
        (NotificationKind.CLASS, {"class_id": "class-9"}, "classId", "class-9"),
        (NotificationKind.ROLE, {"role": "parent"}, "role", "parent"),
    ],
)
def test_device_data_carries_the_target(kind, fields, key, value):
    data = build_device_data(_notification(kind, **fields))

    assert data[key] == value
    assert data["type"] == kind.value


def test_unavailable_provider_fails_the_dispatch(coordinator_for, make_provider, add_token):
    add_token("token-a", owner_id="alice")
    provider = make_provider(available=False)

    with pytest.raises(ProviderUnavailableError):
        coordinator_for(provider).dispatch_with_fallback(
            _notification(NotificationKind.DIRECT, owner_id="alice")
        )
    assert provider.token_calls == []


def test_missing_provider_cannot_be_wired(session, settings):
    with pytest.raises(ProviderUnavailableError):
        FallbackCoordinator.from_session(session, None, settings)


def test_invalid_target_fails_the_dispatch(coordinator_for, provider):
    with pytest.raises(InvalidSelectorError):
        coordinator_for(provider).dispatch_with_fallback(
            _notification(NotificationKind.DIRECT, owner_id=None)
        )
