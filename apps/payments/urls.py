"""URL routing for the payments domain."""

from __future__ import annotations

from django.urls import path  # type: ignore

from .views import OnboardingView, StripeWebhookView

urlpatterns = [
    path("onboarding/", OnboardingView.as_view(), name="payments-onboarding"),
    path("webhooks/stripe/", StripeWebhookView.as_view(), name="payments-stripe-webhook"),
]
