import uuid
from decimal import Decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

import shared.infrastructure.fields


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("scooters", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Booking",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("booking_number", models.CharField(editable=False, max_length=24, unique=True)),
                ("start", models.DateTimeField()),
                ("end", models.DateTimeField()),
                ("duration_class", models.PositiveSmallIntegerField(choices=[(6, "6 hours"), (24, "24 hours")])),
                ("base_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=10)),
                ("unlock_fee", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=10)),
                ("fees_and_taxes", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=10)),
                ("total_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=10)),
                ("currency", models.CharField(default="USD", max_length=3)),
                ("confirmation_code", shared.infrastructure.fields.EncryptedCharField(blank=True)),
                ("failed_code_attempts", models.PositiveSmallIntegerField(default=0)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("requested", "Requested"),
                            ("accepted", "Accepted"),
                            ("active", "Active"),
                            ("rejected", "Rejected"),
                            ("completed", "Completed"),
                        ],
                        default="requested",
                        max_length=16,
                    ),
                ),
                ("version", models.PositiveIntegerField(default=0)),
                (
                    "expires_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="A request still open at this time is expired by the system.",
                        null=True,
                    ),
                ),
                (
                    "rejection_source",
                    models.CharField(
                        blank=True,
                        choices=[("owner", "Owner"), ("renter", "Renter"), ("system", "System")],
                        max_length=10,
                    ),
                ),
                ("rejection_reason", models.CharField(blank=True, max_length=255)),
                ("accepted_at", models.DateTimeField(blank=True, null=True)),
                ("rejected_at", models.DateTimeField(blank=True, null=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "owner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="owner_bookings",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "renter",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="rentals",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "scooter",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="bookings",
                        to="scooters.scooter",
                    ),
                ),
            ],
            options={
                "verbose_name": "Booking",
                "verbose_name_plural": "Bookings",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status", "expires_at"], name="reservation_status_e0f1a2_idx"),
                    models.Index(fields=["renter", "status"], name="reservation_renter__3c4d5e_idx"),
                    models.Index(fields=["owner", "status"], name="reservation_owner_i_6f7a8b_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(status__in=["requested", "accepted", "active"]),
                        fields=("scooter",),
                        name="one_open_booking_per_scooter",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(end__gt=models.F("start")),
                        name="booking_valid_window",
                    ),
                ],
            },
        ),
    ]
