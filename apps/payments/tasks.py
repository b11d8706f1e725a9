"""Celery tasks for the payments domain."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore

from shared.domain.exceptions import TransientProcessorError

logger = logging.getLogger(__name__)


@shared_task(
    name="payments.refund_payment",
    autoretry_for=(TransientProcessorError,),
    retry_backoff=True,
    max_retries=5,
)
def refund_payment(booking_id: str) -> str | None:
    """
    Refund the captured payment of a closed booking.

    Safe to run more than once: only a captured payment of a rejected
    booking is refunded, and the processor call carries an idempotency key.
    """
    from .services import payout_orchestrator

    record = payout_orchestrator.refund(booking_id)
    if record is None:
        return None
    return record.status
