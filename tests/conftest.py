"""Shared fixtures for the campus-notify test-suite."""

from __future__ import annotations

import os
import sys
import threading
import time
from collections.abc import Callable, Iterable, Mapping, Sequence
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("ACCESS_TOKEN_EXPIRE_MINUTES", "15")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from campus_notify.config import Settings
from campus_notify.domain.entities import (
    DeliveryChannel,
    DeliveryOutcome,
    DeviceToken,
    NotificationMessage,
)
from campus_notify.infrastructure.database import initialize_database
from campus_notify.infrastructure.push import BulkPushProvider, PushProvider, TopicManager
from campus_notify.infrastructure.repositories import (
    ClassMemberRepository,
    DeviceTokenRepository,
)


class FakePushProvider(PushProvider):
    """In-memory provider recording every send.

    Tokens succeed unless listed in ``failing``, ``unregistered``, ``raising``
    or ``slow``. Topics reach somebody only when they have subscribers; a
    topic listed in ``slow`` also sleeps for ``delay`` seconds.
    """

    name = "fake"

    def __init__(
        self,
        *,
        failing: Iterable[str] = (),
        unregistered: Iterable[str] = (),
        raising: Iterable[str] = (),
        slow: Iterable[str] = (),
        delay: float = 0.0,
        topic_subscribers: Mapping[str, int] | None = None,
        failing_topics: Iterable[str] = (),
        available: bool = True,
    ) -> None:
        self.failing = set(failing)
        self.unregistered = set(unregistered)
        self.raising = set(raising)
        self.slow = set(slow)
        self.delay = delay
        self.topic_subscribers = dict(topic_subscribers or {})
        self.failing_topics = set(failing_topics)
        self.available = available
        self.closed = False
        self.token_calls: list[tuple[str, NotificationMessage, dict[str, str]]] = []
        self.topic_calls: list[tuple[str, NotificationMessage, dict[str, str]]] = []
        self._lock = threading.Lock()

    @property
    def sent_tokens(self) -> list[str]:
        return [token for token, _, _ in self.token_calls]

    @property
    def sent_topics(self) -> list[str]:
        return [topic for topic, _, _ in self.topic_calls]

    def outcome_for(self, token: str) -> DeliveryOutcome:
        if token in self.slow:
            time.sleep(self.delay)
        if token in self.raising:
            raise RuntimeError(f"transport error for {token}")
        if token in self.unregistered:
            return DeliveryOutcome.failure(DeliveryChannel.TOKEN_LIST, token, "unregistered")
        if token in self.failing:
            return DeliveryOutcome.failure(
                DeliveryChannel.TOKEN_LIST, token, "invalid_argument"
            )
        return DeliveryOutcome.success(DeliveryChannel.TOKEN_LIST, token, f"msg-{token}")

    def send_to_token(
        self, token: str, message: NotificationMessage, data: Mapping[str, str]
    ) -> DeliveryOutcome:
        with self._lock:
            self.token_calls.append((token, message, dict(data)))
        return self.outcome_for(token)

    def send_to_topic(
        self, topic: str, message: NotificationMessage, data: Mapping[str, str]
    ) -> DeliveryOutcome:
        with self._lock:
            self.topic_calls.append((topic, message, dict(data)))
        if topic in self.slow:
            time.sleep(self.delay)
        if topic in self.failing_topics:
            return DeliveryOutcome.failure(DeliveryChannel.TOPIC, topic, "provider_error")
        if self.topic_subscribers.get(topic, 0) > 0:
            return DeliveryOutcome.success(DeliveryChannel.TOPIC, topic, f"msg-{topic}")
        return DeliveryOutcome.nobody_reached(DeliveryChannel.TOPIC, topic)

    def is_available(self) -> bool:
        return self.available and not self.closed

    def close(self) -> None:
        self.closed = True


class FakeBulkPushProvider(FakePushProvider, BulkPushProvider):
    """Fake provider exposing the bulk primitive."""

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.bulk_calls: list[list[str]] = []

    def send_to_tokens(
        self,
        tokens: Sequence[str],
        message: NotificationMessage,
        data: Mapping[str, str],
    ) -> list[DeliveryOutcome]:
        self.bulk_calls.append(list(tokens))
        return [self.outcome_for(token) for token in tokens]


class FakeTopicPushProvider(FakePushProvider, TopicManager):
    """Fake provider that also manages topic subscriptions."""

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.subscriptions: dict[str, set[str]] = {}

    def subscribe_to_topic(self, tokens: Sequence[str], topic: str) -> int:
        accepted = [token for token in tokens if token not in self.unregistered]
        self.subscriptions.setdefault(topic, set()).update(accepted)
        self.topic_subscribers[topic] = len(self.subscriptions[topic])
        return len(accepted)

    def unsubscribe_from_topic(self, tokens: Sequence[str], topic: str) -> int:
        current = self.subscriptions.setdefault(topic, set())
        removed = [token for token in tokens if token in current]
        current.difference_update(removed)
        self.topic_subscribers[topic] = len(current)
        return len(removed)


_PROVIDER_KINDS: dict[str, type[FakePushProvider]] = {
    "plain": FakePushProvider,
    "bulk": FakeBulkPushProvider,
    "topics": FakeTopicPushProvider,
}


@pytest.fixture()
def make_provider() -> Callable[..., FakePushProvider]:
    """Return a factory building fake providers (``kind`` is plain, bulk or topics)."""

    def factory(kind: str = "plain", **kwargs) -> FakePushProvider:
        return _PROVIDER_KINDS[kind](**kwargs)

    return factory


@pytest.fixture()
def provider(make_provider) -> FakePushProvider:
    return make_provider()


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        database_url="sqlite://",
        secret_key="test-secret",
        dispatch_chunk_size=500,
        dispatch_max_concurrency=1,
        dispatch_send_timeout_seconds=5.0,
    )


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    initialize_database(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def add_token(session) -> Callable[..., DeviceToken]:
    """Register a device token directly through the repository."""

    repository = DeviceTokenRepository(session)

    def factory(
        token: str,
        *,
        owner_id: str = "owner-1",
        tenant_id: str = "school-1",
        role: str = "student",
        topic: str | None = None,
        is_active: bool = True,
    ) -> DeviceToken:
        device_token, _ = repository.upsert(
            token=token,
            owner_id=owner_id,
            tenant_id=tenant_id,
            role=role,
            topic=topic,
        )
        if not is_active:
            device_token = repository.set_active(device_token.id, False)
        return device_token

    return factory


@pytest.fixture()
def add_class_member(session) -> Callable[..., None]:
    repository = ClassMemberRepository(session)

    def factory(class_id: str, owner_id: str, *, tenant_id: str = "school-1") -> None:
        repository.add(tenant_id=tenant_id, class_id=class_id, owner_id=owner_id)

    return factory
