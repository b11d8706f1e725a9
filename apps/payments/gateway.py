"""
Stripe Payment Gateway

Thin wrapper around the Stripe SDK. Every processor call made by the
project goes through this module so that:
- SDK errors are translated into the domain error taxonomy
  (TransientProcessorError / PaymentDeclined / PaymentProcessorError)
- amounts are converted to minor units in one place
- development runs without a secret key get an emulated processor
"""

from __future__ import annotations

import json
import logging
import uuid
from contextlib import contextmanager
from dataclasses import dataclass

import stripe
from django.conf import settings

from shared.domain.exceptions import (
    PaymentDeclined,
    PaymentProcessorError,
    TransientProcessorError,
)
from shared.domain.value_objects import Money

logger = logging.getLogger(__name__)


class InvalidWebhook(Exception):
    """Webhook payload could not be parsed or its signature did not verify."""

    pass


@dataclass(frozen=True)
class ChargeResult:
    id: str
    status: str
    amount_cents: int
    client_secret: str = ""

    @property
    def succeeded(self) -> bool:
        return self.status == "succeeded"


@dataclass(frozen=True)
class AccountStatus:
    account_id: str
    charges_enabled: bool
    payouts_enabled: bool
    details_submitted: bool

    @property
    def is_onboarded(self) -> bool:
        return self.charges_enabled and self.details_submitted


def _api_key() -> str:
    return getattr(settings, "STRIPE_SECRET_KEY", "")


def _currency() -> str:
    return getattr(settings, "PAYMENTS_CURRENCY", "usd").lower()


def is_emulated() -> bool:
    """No real processor calls in DEBUG or without a secret key."""

    return settings.DEBUG or not _api_key()


def _emulated_id(prefix: str) -> str:
    return f"{prefix}_emul_{uuid.uuid4().hex[:16]}"


@contextmanager
def translate_errors(operation: str):
    """Map Stripe SDK errors onto domain errors."""

    try:
        yield
    except stripe.CardError as exc:
        logger.warning("Stripe %s declined: %s (code=%s)", operation, exc.user_message, exc.code)
        raise PaymentDeclined(exc.user_message or str(exc), processor_code=exc.code or "")
    except (stripe.APIConnectionError, stripe.RateLimitError) as exc:
        logger.error("Stripe %s unavailable: %s", operation, exc)
        raise TransientProcessorError(processor_message=str(exc))
    except stripe.APIError as exc:
        # Stripe-side 5xx
        logger.error("Stripe %s failed on the processor side: %s", operation, exc)
        raise TransientProcessorError(processor_message=str(exc))
    except stripe.StripeError as exc:
        logger.error("Stripe %s rejected: %s", operation, exc)
        raise PaymentProcessorError(str(exc.user_message or exc), processor_code=exc.code or "")


def create_split_intent(
    *,
    amount: Money,
    platform_fee: Money,
    destination: str,
    metadata: dict,
    idempotency_key: str,
    description: str = "",
) -> ChargeResult:
    """
    Create a PaymentIntent whose proceeds are split on capture

    ``platform_fee`` stays with the platform as the application fee, the
    remainder is transferred to the connected account ``destination``.
    """
    logger.info(
        "Creating split payment intent: amount=%s fee=%s destination=%s",
        amount.cents, platform_fee.cents, destination,
    )

    if is_emulated():
        logger.warning("Stripe is emulated (DEBUG or missing STRIPE_SECRET_KEY)")
        intent_id = _emulated_id("pi")
        return ChargeResult(
            id=intent_id,
            status="requires_payment_method",
            amount_cents=amount.cents,
            client_secret=f"{intent_id}_secret",
        )

    with translate_errors("payment intent"):
        intent = stripe.PaymentIntent.create(
            api_key=_api_key(),
            amount=amount.cents,
            currency=_currency(),
            application_fee_amount=platform_fee.cents,
            transfer_data={"destination": destination},
            automatic_payment_methods={"enabled": True},
            description=description,
            metadata=metadata,
            idempotency_key=idempotency_key,
        )

    logger.info("Payment intent %s created with status %s", intent.id, intent.status)
    return ChargeResult(
        id=intent.id,
        status=intent.status,
        amount_cents=intent.amount,
        client_secret=intent.client_secret or "",
    )


def create_charge(
    *,
    amount: Money,
    payment_method: str,
    description: str,
    metadata: dict,
    idempotency_key: str | None = None,
) -> ChargeResult:
    """Flat charge confirmed immediately, no split (e.g. Apple Pay token)."""

    logger.info("Creating flat charge: amount=%s description=%s", amount.cents, description)

    if is_emulated():
        logger.warning("Stripe is emulated (DEBUG or missing STRIPE_SECRET_KEY)")
        return ChargeResult(id=_emulated_id("pi"), status="succeeded", amount_cents=amount.cents)

    params = {
        "api_key": _api_key(),
        "amount": amount.cents,
        "currency": _currency(),
        "payment_method": payment_method,
        "confirm": True,
        "automatic_payment_methods": {"enabled": True, "allow_redirects": "never"},
        "description": description,
        "metadata": metadata,
    }
    if idempotency_key:
        params["idempotency_key"] = idempotency_key

    with translate_errors("charge"):
        intent = stripe.PaymentIntent.create(**params)

    logger.info("Charge %s finished with status %s", intent.id, intent.status)
    return ChargeResult(id=intent.id, status=intent.status, amount_cents=intent.amount)


def refund(intent_id: str, *, idempotency_key: str, reason: str = "requested_by_customer") -> str:
    """Refund a captured intent in full; returns the refund id."""

    logger.info("Refunding payment intent %s", intent_id)

    if is_emulated():
        logger.warning("Stripe is emulated (DEBUG or missing STRIPE_SECRET_KEY)")
        return _emulated_id("re")

    with translate_errors("refund"):
        result = stripe.Refund.create(
            api_key=_api_key(),
            payment_intent=intent_id,
            reason=reason,
            idempotency_key=idempotency_key,
        )

    logger.info("Refund %s created for %s (status=%s)", result.id, intent_id, result.status)
    return result.id


def create_express_account(*, email: str, metadata: dict) -> str:
    """Connected account that can accept card payments and receive transfers."""

    if is_emulated():
        logger.warning("Stripe is emulated (DEBUG or missing STRIPE_SECRET_KEY)")
        return _emulated_id("acct")

    with translate_errors("account creation"):
        account = stripe.Account.create(
            api_key=_api_key(),
            type="express",
            email=email,
            capabilities={
                "card_payments": {"requested": True},
                "transfers": {"requested": True},
            },
            metadata=metadata,
        )

    logger.info("Created Stripe Express account %s", account.id)
    return account.id


def create_onboarding_link(account_id: str) -> str:
    refresh_url = getattr(settings, "STRIPE_ONBOARDING_REFRESH_URL", "")
    return_url = getattr(settings, "STRIPE_ONBOARDING_RETURN_URL", "")

    if is_emulated():
        logger.warning("Stripe is emulated (DEBUG or missing STRIPE_SECRET_KEY)")
        return f"{return_url}?account={account_id}"

    with translate_errors("account link"):
        link = stripe.AccountLink.create(
            api_key=_api_key(),
            account=account_id,
            refresh_url=refresh_url,
            return_url=return_url,
            type="account_onboarding",
        )
    return link.url


def account_status_from_payload(account) -> AccountStatus:
    return AccountStatus(
        account_id=account["id"],
        charges_enabled=bool(account.get("charges_enabled")),
        payouts_enabled=bool(account.get("payouts_enabled")),
        details_submitted=bool(account.get("details_submitted")),
    )


def retrieve_account(account_id: str) -> AccountStatus:
    if is_emulated():
        logger.warning("Stripe is emulated (DEBUG or missing STRIPE_SECRET_KEY)")
        return AccountStatus(account_id, True, True, True)

    with translate_errors("account lookup"):
        account = stripe.Account.retrieve(account_id, api_key=_api_key())
    return account_status_from_payload(account)


def construct_event(payload: bytes, signature: str) -> dict:
    """Verify the Stripe-Signature header; returns the event as plain JSON."""

    secret = getattr(settings, "STRIPE_WEBHOOK_SECRET", "")
    try:
        stripe.Webhook.construct_event(payload, signature, secret)
        return json.loads(payload)
    except ValueError as exc:
        raise InvalidWebhook("Invalid payload") from exc
    except stripe.SignatureVerificationError as exc:
        raise InvalidWebhook("Invalid signature") from exc
