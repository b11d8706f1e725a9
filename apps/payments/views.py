"""Payment API views: owner onboarding and processor webhooks."""

from __future__ import annotations

import logging

from rest_framework import permissions, status  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from . import gateway
from .models import PayoutAccount
from .serializers import OnboardingRequestSerializer, PayoutAccountSerializer
from .services import payout_orchestrator

logger = logging.getLogger(__name__)


class OnboardingView(APIView):
    """Start (or resume) payout onboarding for the current owner."""

    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):  # type: ignore
        account = PayoutAccount.objects.filter(owner=request.user).first()
        if account is None:
            return Response({"detail": "Payout onboarding not started."}, status=status.HTTP_404_NOT_FOUND)
        return Response(PayoutAccountSerializer(account).data)

    def post(self, request):  # type: ignore
        serializer = OnboardingRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        account, link = payout_orchestrator.start_onboarding(
            request.user,
            email=serializer.validated_data.get("email", ""),
        )
        data = PayoutAccountSerializer(account).data
        data["onboarding_url"] = link
        return Response(data, status=status.HTTP_200_OK)


class StripeWebhookView(APIView):
    """Stripe webhook endpoint; authenticity comes from the signature header."""

    authentication_classes: list = []
    permission_classes = [permissions.AllowAny]

    def post(self, request):  # type: ignore
        signature = request.headers.get("Stripe-Signature", "")
        try:
            event = gateway.construct_event(request.body, signature)
        except gateway.InvalidWebhook as exc:
            logger.warning("Rejected Stripe webhook: %s", exc)
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        processed = payout_orchestrator.handle_processor_event(event)
        return Response({"received": True, "duplicate": not processed})
