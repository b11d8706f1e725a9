"""
Domain Errors

Typed failures shared by every context. Each error carries a stable
machine-readable ``code`` and the HTTP status the API layer answers with,
so views never have to map exceptions one by one.
"""


class DomainError(Exception):
    """Base class for all expected, user-visible failures"""

    code = 'domain_error'
    http_status = 400
    default_message = 'Operation rejected.'

    def __init__(self, message: str | None = None, **context):
        self.message = message or self.default_message
        self.context = context
        super().__init__(self.message)

    def to_dict(self) -> dict:
        payload = {'code': self.code, 'detail': self.message}
        if self.context:
            payload['context'] = {k: str(v) for k, v in self.context.items()}
        return payload


# ===== Validation =====

class InvalidDurationClass(DomainError):
    code = 'invalid_duration_class'
    default_message = 'Only 6 and 24 hour rentals are supported.'


class InvalidAvailability(DomainError):
    code = 'invalid_availability'
    default_message = 'Weekly availability is malformed.'


class AssetUnavailable(DomainError):
    code = 'asset_unavailable'
    http_status = 409
    default_message = 'Scooter is not available for the requested window.'


# ===== Consistency =====

class NotFound(DomainError):
    code = 'not_found'
    http_status = 404
    default_message = 'Record not found.'


# ===== Concurrency =====

class AlreadyBooked(DomainError):
    code = 'already_booked'
    http_status = 409
    default_message = 'Scooter already has an open booking.'


class ConcurrencyConflict(DomainError):
    code = 'concurrency_conflict'
    http_status = 409
    default_message = 'Record was modified concurrently, please retry.'


# ===== State machine =====

class InvalidTransition(DomainError):
    code = 'invalid_transition'
    http_status = 409
    default_message = 'Transition is not allowed from the current status.'


class NotBookingOwner(DomainError):
    code = 'not_booking_owner'
    http_status = 403
    default_message = 'Only the scooter owner may perform this action.'


class NotScooterOwner(DomainError):
    code = 'not_scooter_owner'
    http_status = 403
    default_message = 'Only the owner may change this listing.'


class NotBookingRenter(DomainError):
    code = 'not_booking_renter'
    http_status = 403
    default_message = 'Only the renter may perform this action.'


class PaymentNotCaptured(DomainError):
    code = 'payment_not_captured'
    http_status = 409
    default_message = 'Payment has not been captured yet.'


class CodeMismatch(DomainError):
    code = 'code_mismatch'
    default_message = 'Incorrect confirmation code.'


class CodeLockedOut(DomainError):
    code = 'code_locked_out'
    http_status = 423
    default_message = 'Too many incorrect confirmation codes.'


# ===== Payment processor =====

class PaymentProcessorError(DomainError):
    """Terminal processor failure not covered by a narrower type"""

    code = 'payment_processor_error'
    http_status = 502
    default_message = 'Payment processor rejected the request.'


class TransientProcessorError(PaymentProcessorError):
    code = 'payment_processor_unavailable'
    http_status = 503
    default_message = 'Payment processor is temporarily unavailable.'


class PaymentDeclined(PaymentProcessorError):
    code = 'payment_declined'
    http_status = 402
    default_message = 'Payment was declined.'


class ProviderNotOnboarded(DomainError):
    code = 'provider_not_onboarded'
    http_status = 409
    default_message = 'Scooter owner has not finished payout onboarding.'
