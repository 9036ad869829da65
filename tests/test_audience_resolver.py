"""Tests for resolving notification targets into recipient sets."""

from __future__ import annotations

import pytest

from campus_notify.application.delivery import AudienceResolver
from campus_notify.domain.entities import DeliveryChannel, Notification, NotificationKind
from campus_notify.domain.errors import InvalidSelectorError


def _notification(kind: NotificationKind, **target) -> Notification:
    return Notification(
        id=1,
        kind=kind,
        tenant_id=target.pop("tenant_id", "school-1"),
        title="",
        body="Hello",
        **target,
    )


@pytest.fixture()
def resolver(session, settings) -> AudienceResolver:
    return AudienceResolver.from_session(session, settings)


def test_direct_resolves_active_tokens_of_the_owner(resolver, add_token):
    first = add_token("tok-a", owner_id="alice")
    second = add_token("tok-b", owner_id="alice")
    add_token("tok-c", owner_id="bob")
    add_token("tok-d", owner_id="alice", is_active=False)

    recipients = resolver.resolve(_notification(NotificationKind.DIRECT, owner_id="alice"))

    assert recipients.channel is DeliveryChannel.TOKEN_LIST
    assert recipients.tokens == ("tok-a", "tok-b")
    assert recipients.token_ids == (first.id, second.id)


def test_class_resolves_tokens_of_roster_members_in_the_tenant(
    resolver, add_token, add_class_member
):
    add_class_member("class-7", "alice")
    add_class_member("class-7", "bob")
    add_token("tok-alice", owner_id="alice")
    add_token("tok-bob", owner_id="bob")
    add_token("tok-bob-elsewhere", owner_id="bob", tenant_id="school-2")
    add_token("tok-carol", owner_id="carol")

    recipients = resolver.resolve(_notification(NotificationKind.CLASS, class_id="class-7"))

    assert recipients.tokens == ("tok-alice", "tok-bob")


def test_role_skips_inactive_tokens(resolver, add_token):
    add_token("t1", owner_id="teacher-1", role="teacher")
    add_token("t2", owner_id="teacher-2", role="teacher")
    add_token("t3", owner_id="teacher-3", role="teacher", is_active=False)
    add_token("s1", owner_id="student-1", role="student")
    add_token("t4", owner_id="teacher-4", role="teacher", tenant_id="school-2")

    recipients = resolver.resolve(_notification(NotificationKind.ROLE, role="teacher"))

    assert recipients.tokens == ("t1", "t2")


def test_announcement_prefers_tenant_tokens(resolver, add_token):
    add_token("tok-1", owner_id="alice")
    add_token("tok-2", owner_id="bob", role="parent")

    notification = _notification(NotificationKind.ANNOUNCEMENT)
    recipients = resolver.resolve(notification)
    plan = resolver.plan(notification)

    assert recipients.tokens == ("tok-1", "tok-2")
    assert [candidate.channel for candidate in plan] == [
        DeliveryChannel.TOKEN_LIST,
        DeliveryChannel.TOKEN_LIST,
        DeliveryChannel.TOPIC,
        DeliveryChannel.TOPIC,
    ]
    assert [candidate.name for candidate in plan[2:]] == ["school-1", "tenant_school-1"]


@pytest.mark.parametrize("label", ["school-1", "tenant_school-1"])
def test_announcement_falls_back_to_topic_labelled_tokens(resolver, add_token, label):
    add_token("legacy-token", owner_id="alice", tenant_id="legacy", topic=label)
    add_token("other-token", owner_id="bob", tenant_id="legacy", topic="tenant_school-9")

    recipients = resolver.resolve(_notification(NotificationKind.ANNOUNCEMENT))

    assert recipients.channel is DeliveryChannel.TOKEN_LIST
    assert recipients.tokens == ("legacy-token",)


def test_announcement_without_tokens_resolves_to_prefixed_topic(resolver):
    recipients = resolver.resolve(_notification(NotificationKind.ANNOUNCEMENT))

    assert recipients.channel is DeliveryChannel.TOPIC
    assert recipients.name == "tenant_school-1"
    assert recipients.tokens == ()


def test_topic_prefix_is_configurable(session, settings):
    resolver = AudienceResolver.from_session(
        session, settings.model_copy(update={"topic_prefix": "school_"})
    )

    recipients = resolver.resolve(_notification(NotificationKind.ANNOUNCEMENT, tenant_id="42"))

    assert recipients.name == "school_42"


def test_precise_kind_without_tokens_is_an_empty_token_list(resolver):
    recipients = resolver.resolve(_notification(NotificationKind.DIRECT, owner_id="nobody"))

    assert recipients.channel is DeliveryChannel.TOKEN_LIST
    assert recipients.is_empty


@pytest.mark.parametrize(
    ("kind", "target"),
    [
        (NotificationKind.DIRECT, {}),
        (NotificationKind.DIRECT, {"owner_id": "   "}),
        (NotificationKind.CLASS, {"owner_id": "alice"}),
        (NotificationKind.ROLE, {}),
        (NotificationKind.ROLE, {"role": "janitor"}),
        (NotificationKind.ANNOUNCEMENT, {"tenant_id": ""}),
    ],
)
def test_missing_or_malformed_target_raises(resolver, kind, target):
    with pytest.raises(InvalidSelectorError):
        resolver.resolve(_notification(kind, **target))
