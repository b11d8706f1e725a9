"""
Payout Orchestrator

Coordinates the split payment of a booking with the booking life cycle:
- authorize: create the processor intent for a requested booking
- confirm_capture: record the processor's capture outcome, exactly once
- refund: give the money back when a captured booking closed without a rental
- owner onboarding and processor webhooks

Processor calls never run inside a database transaction. Status changes
on PaymentRecord are conditional UPDATEs, so repeated or concurrent
deliveries of the same outcome change the record once.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings  # type: ignore
from django.db import IntegrityError, transaction  # type: ignore
from django.utils import timezone  # type: ignore

from apps.reservations.models import Booking
from shared.domain.exceptions import InvalidTransition, NotFound, ProviderNotOnboarded
from shared.domain.value_objects import Money

from . import gateway
from .models import PaymentRecord, PayoutAccount, ProcessorEvent

logger = logging.getLogger(__name__)


def platform_fee_for(total: Money) -> Money:
    """Platform share of a booking total, rounded half up to whole cents."""

    rate = Decimal(str(getattr(settings, "PLATFORM_FEE_RATE", "0.15")))
    cents = (Decimal(total.cents) * rate).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return Money.from_cents(int(cents), total.currency)


class PayoutOrchestrator:

    # ===== Authorization =====

    def authorize(self, booking_id) -> PaymentRecord:
        """
        Create the split payment intent for a requested booking.

        Idempotent: a record that already carries an intent is returned
        unchanged, and the processor call itself uses an idempotency key
        derived from the record.
        """

        try:
            record = PaymentRecord.objects.select_related("booking").get(booking_id=booking_id)
        except PaymentRecord.DoesNotExist:
            raise NotFound("Payment record not found", booking_id=booking_id)

        if record.intent_id:
            logger.info("Booking %s already authorized with %s", booking_id, record.intent_id)
            return record

        booking = record.booking
        if booking.status != Booking.Status.REQUESTED:
            raise InvalidTransition(
                "Only requested bookings can be authorized",
                booking_id=booking_id,
                status=booking.status,
            )

        account = self._onboarded_account(booking.owner_id)
        amount = Money(record.amount)
        result = gateway.create_split_intent(
            amount=amount,
            platform_fee=Money(record.platform_fee),
            destination=account.stripe_account_id,
            metadata={
                "booking_id": str(booking.id),
                "booking_number": booking.booking_number,
                "scooter_id": str(booking.scooter_id),
            },
            idempotency_key=f"authorize-{record.id}",
            description=f"Scooter rental {booking.booking_number}",
        )

        PaymentRecord.objects.filter(pk=record.pk, intent_id__isnull=True).update(
            intent_id=result.id,
            client_secret=result.client_secret,
            destination_account=account.stripe_account_id,
            authorized_at=timezone.now(),
        )
        record.refresh_from_db()
        logger.info(
            "Booking %s authorized: intent %s, amount %s, platform fee %s",
            booking.booking_number, record.intent_id, amount, Money(record.platform_fee),
        )
        return record

    def _onboarded_account(self, owner_id) -> PayoutAccount:
        try:
            account = PayoutAccount.objects.get(owner_id=owner_id)
        except PayoutAccount.DoesNotExist:
            raise ProviderNotOnboarded(owner_id=owner_id)

        if not account.is_onboarded:
            # Webhooks may lag behind the owner finishing onboarding
            self._apply_account_status(account, gateway.retrieve_account(account.stripe_account_id))
        if not account.is_onboarded:
            raise ProviderNotOnboarded(owner_id=owner_id)
        return account

    # ===== Capture =====

    def confirm_capture(self, intent_id: str, succeeded: bool, failure_reason: str = "") -> bool:
        """
        Record the processor's capture outcome for ``intent_id``.

        Returns whether the record changed. A success may follow an earlier
        failure (the renter retried with another card); nothing changes a
        captured or refunded record. A capture landing on a booking that is
        no longer requested is refunded.
        """

        needs_refund = False
        with transaction.atomic():
            try:
                record = PaymentRecord.objects.get(intent_id=intent_id)
            except PaymentRecord.DoesNotExist:
                logger.warning("Capture outcome for unknown intent %s ignored", intent_id)
                return False

            # Serializes with booking transitions, which update this row
            booking = Booking.objects.select_for_update().get(pk=record.booking_id)

            if succeeded:
                updated = PaymentRecord.objects.filter(
                    pk=record.pk,
                    status__in=[PaymentRecord.Status.CREATED, PaymentRecord.Status.FAILED],
                ).update(
                    status=PaymentRecord.Status.CAPTURED,
                    captured_at=timezone.now(),
                    failure_reason="",
                )
            else:
                updated = PaymentRecord.objects.filter(
                    pk=record.pk,
                    status=PaymentRecord.Status.CREATED,
                ).update(
                    status=PaymentRecord.Status.FAILED,
                    failure_reason=(failure_reason or "")[:255],
                )

            if not updated:
                logger.info("Duplicate capture outcome for intent %s ignored", intent_id)
                return False

            needs_refund = succeeded and booking.status != Booking.Status.REQUESTED

        if succeeded:
            logger.info("Payment %s captured for booking %s", intent_id, booking.booking_number)
        else:
            logger.error(
                "Payment %s failed for booking %s: %s",
                intent_id, booking.booking_number, failure_reason,
            )

        if needs_refund:
            from .tasks import refund_payment

            logger.warning(
                "Capture %s landed on %s booking %s, refunding",
                intent_id, booking.status, booking.booking_number,
            )
            refund_payment.delay(str(booking.id))
        return True

    # ===== Refunds =====

    def refund(self, booking_id) -> PaymentRecord | None:
        """Refund a captured payment of a booking that closed without a rental."""

        record = PaymentRecord.objects.select_related("booking").filter(booking_id=booking_id).first()
        if record is None:
            logger.warning("No payment record for booking %s, nothing to refund", booking_id)
            return None
        if record.status != PaymentRecord.Status.CAPTURED:
            logger.info("Payment for booking %s is %s, no refund needed", booking_id, record.status)
            return record
        if record.booking.status != Booking.Status.REJECTED:
            logger.info("Booking %s is %s, captured payment kept", booking_id, record.booking.status)
            return record

        refund_id = gateway.refund(record.intent_id, idempotency_key=f"refund-{record.id}")
        PaymentRecord.objects.filter(pk=record.pk, status=PaymentRecord.Status.CAPTURED).update(
            status=PaymentRecord.Status.REFUNDED,
            refund_id=refund_id,
            refunded_at=timezone.now(),
        )
        record.refresh_from_db()
        logger.info("Refunded %s for booking %s (%s)", Money(record.amount), booking_id, refund_id)
        return record

    # ===== Owner onboarding =====

    def start_onboarding(self, owner, email: str = "") -> tuple[PayoutAccount, str]:
        """Create (or reuse) the owner's Express account and return an onboarding link."""

        account = PayoutAccount.objects.filter(owner=owner).first()
        if account is None:
            account_id = gateway.create_express_account(
                email=email or getattr(owner, "email", ""),
                metadata={"owner_id": str(owner.pk)},
            )
            try:
                account = PayoutAccount.objects.create(owner=owner, stripe_account_id=account_id)
            except IntegrityError:
                # Concurrent onboarding request created it first
                account = PayoutAccount.objects.get(owner=owner)
            logger.info("Payout account %s created for owner %s", account.stripe_account_id, owner.pk)

        link = gateway.create_onboarding_link(account.stripe_account_id)
        return account, link

    def sync_account(self, status: gateway.AccountStatus) -> PayoutAccount | None:
        account = PayoutAccount.objects.filter(stripe_account_id=status.account_id).first()
        if account is None:
            logger.warning("Account update for unknown Stripe account %s ignored", status.account_id)
            return None
        self._apply_account_status(account, status)
        return account

    def _apply_account_status(self, account: PayoutAccount, status: gateway.AccountStatus) -> None:
        account.charges_enabled = status.charges_enabled
        account.payouts_enabled = status.payouts_enabled
        account.details_submitted = status.details_submitted
        if account.is_onboarded and account.onboarded_at is None:
            account.onboarded_at = timezone.now()
            logger.info("Owner %s finished payout onboarding", account.owner_id)
        account.save(update_fields=[
            "charges_enabled",
            "payouts_enabled",
            "details_submitted",
            "onboarded_at",
            "updated_at",
        ])

    # ===== Webhooks =====

    def handle_processor_event(self, event: dict) -> bool:
        """
        Process one verified webhook event; returns False for a redelivery.

        The event is stored first; one whose processing failed stays
        unprocessed and is handled again when the processor retries.
        """

        event_id = event["id"]
        event_type = event.get("type", "")
        stored, created = ProcessorEvent.objects.get_or_create(
            event_id=event_id,
            defaults={"event_type": event_type, "payload": event},
        )
        if not created and stored.processed_at is not None:
            logger.info("Webhook %s (%s) already processed", event_id, event_type)
            return False

        logger.info("Processing webhook %s (%s)", event_id, event_type)
        obj = event.get("data", {}).get("object", {})

        if event_type == "payment_intent.succeeded":
            self.confirm_capture(obj["id"], succeeded=True)
        elif event_type == "payment_intent.payment_failed":
            error = obj.get("last_payment_error") or {}
            self.confirm_capture(obj["id"], succeeded=False, failure_reason=error.get("message", ""))
        elif event_type == "account.updated":
            self.sync_account(gateway.account_status_from_payload(obj))
        else:
            logger.debug("Webhook type %s not handled", event_type)

        ProcessorEvent.objects.filter(pk=stored.pk).update(processed_at=timezone.now())
        return True


payout_orchestrator = PayoutOrchestrator()


# ===== Event handlers =====

def refund_closed_booking(event) -> None:
    """BookingRejected / BookingExpired: refund in the background if captured."""

    from .tasks import refund_payment

    refund_payment.delay(str(event.booking_id))
