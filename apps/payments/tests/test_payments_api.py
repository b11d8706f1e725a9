"""Integration tests for the webhook and onboarding endpoints."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from unittest import mock

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.payments import gateway
from apps.payments.models import PaymentRecord, PayoutAccount, ProcessorEvent
from apps.reservations.services import request_booking
from apps.scooters.tests.factories import make_scooter, make_user, onboard

MONDAY_NOON = datetime(2030, 1, 7, 12, 0, tzinfo=timezone.utc)


def intent_event(event_id: str, event_type: str, intent_id: str, **extra) -> dict:
    return {
        "id": event_id,
        "type": event_type,
        "data": {"object": {"id": intent_id, "object": "payment_intent", **extra}},
    }


class StripeWebhookTests(APITestCase):
    """Covers signature checks and redelivered processor events."""

    def setUp(self) -> None:
        self.owner = make_user("owner")
        self.renter = make_user("renter")
        onboard(self.owner)
        scooter = make_scooter(self.owner)
        self.record = request_booking(scooter.id, self.renter.id, MONDAY_NOON, 6).payment
        self.url = reverse("payments-stripe-webhook")

    def _post(self, event: dict):
        with mock.patch.object(gateway, "construct_event", return_value=event):
            return self.client.post(
                self.url,
                data=json.dumps(event),
                content_type="application/json",
                HTTP_STRIPE_SIGNATURE="t=1,v1=test",
            )

    def test_invalid_signature_is_rejected(self) -> None:
        response = self.client.post(
            self.url,
            data=json.dumps({"id": "evt_forged"}),
            content_type="application/json",
            HTTP_STRIPE_SIGNATURE="t=1,v1=forged",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(ProcessorEvent.objects.exists())

    def test_succeeded_intent_captures_payment(self) -> None:
        response = self._post(intent_event("evt_1", "payment_intent.succeeded", self.record.intent_id))

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data, {"received": True, "duplicate": False})
        self.record.refresh_from_db()
        self.assertEqual(self.record.status, PaymentRecord.Status.CAPTURED)
        self.assertIsNotNone(ProcessorEvent.objects.get(event_id="evt_1").processed_at)

    def test_redelivered_event_is_acknowledged_once(self) -> None:
        event = intent_event("evt_2", "payment_intent.succeeded", self.record.intent_id)

        self._post(event)
        response = self._post(event)

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertTrue(response.data["duplicate"])
        self.assertEqual(ProcessorEvent.objects.filter(event_id="evt_2").count(), 1)

    def test_failed_intent_records_reason(self) -> None:
        event = intent_event(
            "evt_3",
            "payment_intent.payment_failed",
            self.record.intent_id,
            last_payment_error={"message": "Your card has insufficient funds."},
        )

        self._post(event)

        self.record.refresh_from_db()
        self.assertEqual(self.record.status, PaymentRecord.Status.FAILED)
        self.assertEqual(self.record.failure_reason, "Your card has insufficient funds.")

    def test_account_updated_syncs_payout_account(self) -> None:
        pending_owner = make_user("pending-owner")
        PayoutAccount.objects.create(owner=pending_owner, stripe_account_id="acct_pending")
        event = {
            "id": "evt_4",
            "type": "account.updated",
            "data": {"object": {
                "id": "acct_pending",
                "object": "account",
                "charges_enabled": True,
                "payouts_enabled": True,
                "details_submitted": True,
            }},
        }

        self._post(event)

        self.assertTrue(PayoutAccount.objects.get(owner=pending_owner).is_onboarded)

    def test_unhandled_event_type_is_acknowledged(self) -> None:
        response = self._post({"id": "evt_5", "type": "charge.dispute.created", "data": {"object": {}}})

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(ProcessorEvent.objects.get(event_id="evt_5").event_type, "charge.dispute.created")


class OnboardingAPITests(APITestCase):

    def setUp(self) -> None:
        self.owner = make_user("owner")
        self.url = reverse("payments-onboarding")
        self.client.force_authenticate(self.owner)

    def test_status_before_onboarding(self) -> None:
        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_start_onboarding_returns_link(self) -> None:
        response = self.client.post(self.url, {"email": "owner@example.com"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertTrue(response.data["onboarding_url"])
        self.assertTrue(response.data["stripe_account_id"].startswith("acct_"))

        status_response = self.client.get(self.url)
        self.assertEqual(status_response.status_code, status.HTTP_200_OK)
        self.assertEqual(status_response.data["stripe_account_id"], response.data["stripe_account_id"])

    def test_requires_authentication(self) -> None:
        self.client.force_authenticate(None)

        response = self.client.post(self.url, {}, format="json")

        self.assertIn(response.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))
