"""Payments app package.

Split payments between the platform and scooter owners, owner payout
onboarding and processor webhooks.
"""
