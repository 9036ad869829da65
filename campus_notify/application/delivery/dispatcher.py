"""Perform the sends for a resolved recipient set."""

from __future__ import annotations

import logging
import time
from collections import deque
from collections.abc import Callable, Iterator, Mapping, Sequence
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait

from campus_notify.config import Settings
from campus_notify.domain.entities import (
    DeliveryChannel,
    DeliveryOutcome,
    NotificationMessage,
    RecipientSet,
)
from campus_notify.infrastructure.push import BulkPushProvider, PushProvider
from campus_notify.utils import shorten_token

logger = logging.getLogger(__name__)

TIMEOUT_ERROR = "timeout"
PROVIDER_ERROR = "provider_error"

_SendJob = tuple[DeliveryChannel, str, Callable[[], DeliveryOutcome]]


def _chunks(tokens: Sequence[str], size: int) -> Iterator[Sequence[str]]:
    for start in range(0, len(tokens), size):
        yield tokens[start : start + size]


class DeliveryDispatcher:
    """Send one message to every endpoint of a :class:`RecipientSet`.

    Token lists are processed in fixed-size chunks. Every send, topic sends
    included, runs on a worker thread with at most ``max_concurrency`` in
    flight, so one failing or hanging send never affects its siblings. A send
    that has not returned after ``send_timeout`` seconds is reported as a
    timeout and the dispatch moves on. Nothing is retried.
    """

    def __init__(
        self,
        provider: PushProvider,
        *,
        chunk_size: int = 500,
        max_concurrency: int = 10,
        send_timeout: float = 10.0,
        use_bulk: bool = False,
    ) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if max_concurrency <= 0:
            raise ValueError("max_concurrency must be positive")
        if send_timeout <= 0:
            raise ValueError("send_timeout must be positive")
        self.provider = provider
        self.chunk_size = chunk_size
        self.max_concurrency = max_concurrency
        self.send_timeout = send_timeout
        self.use_bulk = use_bulk

    @classmethod
    def from_settings(cls, provider: PushProvider, settings: Settings) -> "DeliveryDispatcher":
        return cls(
            provider,
            chunk_size=settings.dispatch_chunk_size,
            max_concurrency=settings.dispatch_max_concurrency,
            send_timeout=settings.dispatch_send_timeout_seconds,
            use_bulk=settings.push_use_bulk_send,
        )

    @property
    def bulk_enabled(self) -> bool:
        return self.use_bulk and isinstance(self.provider, BulkPushProvider)

    def dispatch(
        self,
        recipients: RecipientSet,
        message: NotificationMessage,
        data: Mapping[str, str],
    ) -> list[DeliveryOutcome]:
        """Return one outcome per endpoint reached for ``recipients``."""

        if recipients.is_empty:
            return []

        if recipients.channel is DeliveryChannel.TOPIC:
            topic = recipients.name or ""
            [outcome] = self._run_bounded(
                [
                    (
                        DeliveryChannel.TOPIC,
                        topic,
                        lambda: self.provider.send_to_topic(topic, message, data),
                    )
                ]
            )
            if outcome.failed:
                logger.warning("Push to topic %s failed: %s", topic, outcome.error_code)
            return [outcome]

        outcomes: list[DeliveryOutcome] = []
        for chunk in _chunks(recipients.tokens, self.chunk_size):
            if self.bulk_enabled:
                outcomes.extend(self._send_bulk(chunk, message, data))
            else:
                outcomes.extend(self._send_each(chunk, message, data))

        for outcome in outcomes:
            if outcome.failed:
                logger.warning(
                    "Push to token %s failed: %s",
                    shorten_token(outcome.target),
                    outcome.error_code,
                )
        return outcomes

    def _send_each(
        self,
        tokens: Sequence[str],
        message: NotificationMessage,
        data: Mapping[str, str],
    ) -> list[DeliveryOutcome]:
        def send_one(token: str) -> Callable[[], DeliveryOutcome]:
            return lambda: self.provider.send_to_token(token, message, data)

        return self._run_bounded(
            [(DeliveryChannel.TOKEN_LIST, token, send_one(token)) for token in tokens]
        )

    def _run_bounded(self, jobs: Sequence[_SendJob]) -> list[DeliveryOutcome]:
        """Run ``jobs`` with at most ``max_concurrency`` sends in flight.

        Every send gets its own deadline, counted from the moment it starts.
        A send still running at its deadline is abandoned and reported as a
        timeout; its slot goes to the next queued send.
        """

        outcomes: list[DeliveryOutcome | None] = [None] * len(jobs)
        queued = deque(range(len(jobs)))
        running: dict[Future[DeliveryOutcome], tuple[int, float]] = {}
        # Abandoned sends keep their thread, so the pool allows one per job.
        executor = ThreadPoolExecutor(max_workers=len(jobs), thread_name_prefix="push-send")
        try:
            while queued or running:
                while queued and len(running) < self.max_concurrency:
                    index = queued.popleft()
                    future = executor.submit(self._guarded_send, *jobs[index])
                    running[future] = (index, time.monotonic() + self.send_timeout)

                next_deadline = min(deadline for _, deadline in running.values())
                done, _ = wait(
                    running,
                    timeout=max(0.0, next_deadline - time.monotonic()),
                    return_when=FIRST_COMPLETED,
                )
                for future in done:
                    index, _ = running.pop(future)
                    outcomes[index] = future.result()

                now = time.monotonic()
                for future, (index, deadline) in list(running.items()):
                    if deadline <= now and not future.done():
                        del running[future]
                        channel, target, _ = jobs[index]
                        outcomes[index] = DeliveryOutcome.failure(channel, target, TIMEOUT_ERROR)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)
        return [outcome for outcome in outcomes if outcome is not None]

    def _send_bulk(
        self,
        tokens: Sequence[str],
        message: NotificationMessage,
        data: Mapping[str, str],
    ) -> list[DeliveryOutcome]:
        if not isinstance(self.provider, BulkPushProvider):
            raise TypeError(f"Provider {self.provider.name!r} does not support bulk sends")
        try:
            outcomes = list(self.provider.send_to_tokens(tokens, message, data))
        except Exception:  # noqa: BLE001
            logger.exception("Bulk push of %d token(s) failed", len(tokens))
            return [
                DeliveryOutcome.failure(DeliveryChannel.TOKEN_LIST, token, PROVIDER_ERROR)
                for token in tokens
            ]

        if len(outcomes) < len(tokens):
            logger.warning(
                "Bulk push returned %d outcome(s) for %d token(s)",
                len(outcomes),
                len(tokens),
            )
            outcomes.extend(
                DeliveryOutcome.failure(DeliveryChannel.TOKEN_LIST, token, PROVIDER_ERROR)
                for token in tokens[len(outcomes) :]
            )
        return outcomes[: len(tokens)]

    @staticmethod
    def _guarded_send(
        channel: DeliveryChannel,
        target: str,
        send: Callable[[], DeliveryOutcome],
    ) -> DeliveryOutcome:
        try:
            return send()
        except Exception as exc:  # noqa: BLE001
            logger.debug("Send to %s raised %r", shorten_token(target), exc)
            return DeliveryOutcome.failure(channel, target, PROVIDER_ERROR)


__all__ = ["DeliveryDispatcher", "PROVIDER_ERROR", "TIMEOUT_ERROR"]
