from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.payments"
    verbose_name = "Payments"

    def ready(self):
        from apps.reservations.domain.events import BookingExpired, BookingRejected
        from shared.application.message_bus import message_bus

        from .services import refund_closed_booking

        message_bus.register_event_handler(BookingRejected, refund_closed_booking)
        message_bus.register_event_handler(BookingExpired, refund_closed_booking)
