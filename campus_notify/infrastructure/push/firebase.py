"""Firebase Cloud Messaging implementation of the push provider boundary."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from uuid import uuid4

import firebase_admin
from firebase_admin import credentials, exceptions as firebase_exceptions, messaging

from campus_notify.config import Settings
from campus_notify.domain.entities import (
    DeliveryChannel,
    DeliveryOutcome,
    NotificationMessage,
)

from .base import BulkPushProvider, PushProvider, TopicManager

logger = logging.getLogger(__name__)

# FCM accepts at most this many tokens per topic management request.
_TOPIC_BATCH_SIZE = 1000


def classify_firebase_error(exc: Exception) -> str:
    """Return a short error code describing a Firebase send failure."""

    if isinstance(exc, messaging.UnregisteredError):
        return "unregistered"
    if isinstance(exc, messaging.SenderIdMismatchError):
        return "sender_id_mismatch"
    if isinstance(exc, firebase_exceptions.InvalidArgumentError):
        return "invalid_argument"
    if isinstance(exc, firebase_exceptions.DeadlineExceededError):
        return "timeout"
    if isinstance(exc, firebase_exceptions.UnavailableError):
        return "provider_unavailable"
    if isinstance(exc, firebase_exceptions.FirebaseError):
        code = getattr(exc, "code", None)
        return str(code).lower() if code else "provider_error"
    return "provider_error"


class FirebasePushProvider(BulkPushProvider, TopicManager):
    """Send notifications through ``firebase_admin.messaging``.

    The provider owns a dedicated, named Firebase app so several providers (or
    test instances) can coexist without touching the SDK's default app.
    """

    name = "firebase"

    def __init__(self, app: firebase_admin.App, *, dry_run: bool = False) -> None:
        self._app = app
        self._dry_run = dry_run
        self._closed = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "FirebasePushProvider":
        """Initialize a Firebase app from the configured service account."""

        if settings.firebase_credentials_file:
            credential = credentials.Certificate(settings.firebase_credentials_file)
        else:
            account = settings.firebase_service_account()
            if account is None:
                msg = "Firebase service account is not configured"
                raise RuntimeError(msg)
            credential = credentials.Certificate(account)

        app = firebase_admin.initialize_app(
            credential,
            options={"httpTimeout": settings.dispatch_send_timeout_seconds},
            name=f"campus-notify-{uuid4().hex[:8]}",
        )
        return cls(app)

    def is_available(self) -> bool:
        return not self._closed

    def send_to_token(
        self, token: str, message: NotificationMessage, data: Mapping[str, str]
    ) -> DeliveryOutcome:
        payload = self._build_message(message, data, token=token)
        try:
            message_id = messaging.send(payload, dry_run=self._dry_run, app=self._app)
        except firebase_exceptions.FirebaseError as exc:
            return DeliveryOutcome.failure(
                DeliveryChannel.TOKEN_LIST, token, classify_firebase_error(exc)
            )
        return DeliveryOutcome.success(DeliveryChannel.TOKEN_LIST, token, message_id)

    def send_to_topic(
        self, topic: str, message: NotificationMessage, data: Mapping[str, str]
    ) -> DeliveryOutcome:
        payload = self._build_message(message, data, topic=topic)
        try:
            message_id = messaging.send(payload, dry_run=self._dry_run, app=self._app)
        except firebase_exceptions.FirebaseError as exc:
            logger.warning("Topic send to %s rejected by Firebase: %s", topic, exc)
            return DeliveryOutcome.failure(
                DeliveryChannel.TOPIC, topic, classify_firebase_error(exc)
            )
        # FCM does not disclose topic subscriber counts.
        return DeliveryOutcome.accepted(DeliveryChannel.TOPIC, topic, message_id)

    def send_to_tokens(
        self,
        tokens: Sequence[str],
        message: NotificationMessage,
        data: Mapping[str, str],
    ) -> list[DeliveryOutcome]:
        if not tokens:
            return []
        payloads = [self._build_message(message, data, token=token) for token in tokens]
        batch = messaging.send_each(payloads, dry_run=self._dry_run, app=self._app)
        outcomes: list[DeliveryOutcome] = []
        for token, response in zip(tokens, batch.responses):
            if response.success:
                outcomes.append(
                    DeliveryOutcome.success(
                        DeliveryChannel.TOKEN_LIST, token, response.message_id
                    )
                )
            else:
                outcomes.append(
                    DeliveryOutcome.failure(
                        DeliveryChannel.TOKEN_LIST,
                        token,
                        classify_firebase_error(response.exception),
                    )
                )
        return outcomes

    def subscribe_to_topic(self, tokens: Sequence[str], topic: str) -> int:
        succeeded = 0
        for start in range(0, len(tokens), _TOPIC_BATCH_SIZE):
            batch = list(tokens[start : start + _TOPIC_BATCH_SIZE])
            response = messaging.subscribe_to_topic(batch, topic, app=self._app)
            succeeded += response.success_count
            for error in response.errors:
                logger.warning(
                    "Failed to subscribe token #%s to %s: %s",
                    start + error.index,
                    topic,
                    error.reason,
                )
        return succeeded

    def unsubscribe_from_topic(self, tokens: Sequence[str], topic: str) -> int:
        succeeded = 0
        for start in range(0, len(tokens), _TOPIC_BATCH_SIZE):
            batch = list(tokens[start : start + _TOPIC_BATCH_SIZE])
            response = messaging.unsubscribe_from_topic(batch, topic, app=self._app)
            succeeded += response.success_count
        return succeeded

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        firebase_admin.delete_app(self._app)

    @staticmethod
    def _build_message(
        message: NotificationMessage,
        data: Mapping[str, str],
        *,
        token: str | None = None,
        topic: str | None = None,
    ) -> messaging.Message:
        return messaging.Message(
            notification=messaging.Notification(title=message.title, body=message.body),
            data={str(key): str(value) for key, value in data.items()},
            token=token,
            topic=topic,
        )


def build_push_provider(settings: Settings) -> PushProvider | None:
    """Create the process-wide provider handle, or ``None`` when unconfigured."""

    if not (settings.firebase_credentials_file or settings.firebase_service_account()):
        logger.info("Firebase credentials not configured; push delivery disabled")
        return None

    try:
        provider = FirebasePushProvider.from_settings(settings)
    except (ValueError, OSError, RuntimeError) as exc:
        logger.error("Could not initialize Firebase push provider: %s", exc)
        return None

    logger.info("Firebase push provider initialized")
    return provider


__all__ = ["FirebasePushProvider", "build_push_provider", "classify_firebase_error"]
