"""Fold delivery attempts into a :class:`DeliveryResult`."""

from __future__ import annotations

from collections.abc import Sequence

from campus_notify.domain.entities import (
    DeliveryAttempt,
    DeliveryOutcome,
    DeliveryResult,
    ErrorKind,
    OutcomeStatus,
    RecipientSet,
)


def summarize_attempt(
    recipients: RecipientSet, outcomes: Sequence[DeliveryOutcome]
) -> DeliveryAttempt:
    """Count the outcomes of one channel attempt.

    Accepted sends count as successes and are also tallied as unconfirmed.
    """

    delivered = [o for o in outcomes if o.status is OutcomeStatus.DELIVERED]
    accepted = [o for o in outcomes if o.status is OutcomeStatus.ACCEPTED]
    failed = [o for o in outcomes if o.status is OutcomeStatus.FAILED]
    return DeliveryAttempt(
        channel=recipients.channel,
        target=recipients.label,
        recipients=len(outcomes),
        success_count=len(delivered) + len(accepted),
        failure_count=len(failed),
        unconfirmed_count=len(accepted),
    )


def aggregate(
    notification_id: int | None,
    attempts: Sequence[DeliveryAttempt],
    *,
    fallback_used: bool = False,
) -> DeliveryResult:
    """Sum ``attempts`` into the result reported to the caller.

    Partial delivery still counts as success: ``success`` only requires one
    endpoint to have been reached.
    """

    success_count = sum(attempt.success_count for attempt in attempts)
    failure_count = sum(attempt.failure_count for attempt in attempts)

    errors: list[ErrorKind] = []
    if success_count == 0 and failure_count == 0:
        errors.append(ErrorKind.EMPTY_AUDIENCE)
    elif success_count == 0:
        errors.append(ErrorKind.DELIVERY_FAILED)
    elif failure_count:
        errors.append(ErrorKind.PARTIAL_DELIVERY_FAILURE)

    return DeliveryResult(
        notification_id=notification_id,
        channel_attempted=attempts[-1].channel if attempts else None,
        success_count=success_count,
        failure_count=failure_count,
        fallback_used=fallback_used,
        errors=errors,
        attempts=list(attempts),
    )


__all__ = ["aggregate", "summarize_attempt"]
