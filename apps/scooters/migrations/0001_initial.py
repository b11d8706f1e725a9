import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Scooter",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=120)),
                ("location", models.CharField(blank=True, max_length=255)),
                ("description", models.TextField(blank=True)),
                ("brand", models.CharField(blank=True, max_length=80)),
                ("model_name", models.CharField(blank=True, max_length=80)),
                ("top_speed", models.PositiveSmallIntegerField(blank=True, help_text="mph", null=True)),
                ("is_electric", models.BooleanField(default=True)),
                ("range_miles", models.PositiveSmallIntegerField(blank=True, null=True)),
                ("safety_notes", models.TextField(blank=True)),
                ("allow_six_hour", models.BooleanField(default=True)),
                ("allow_full_day", models.BooleanField(default=True)),
                (
                    "six_hour_price",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        max_digits=8,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                    ),
                ),
                (
                    "full_day_price",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        max_digits=8,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                    ),
                ),
                (
                    "timezone",
                    models.CharField(
                        default="UTC",
                        help_text="IANA time zone the weekly availability is expressed in.",
                        max_length=64,
                    ),
                ),
                ("is_active", models.BooleanField(default=True, help_text="Listed for rent.")),
                (
                    "exclusivity",
                    models.CharField(
                        choices=[
                            ("none", "Free"),
                            ("claimed", "Claimed by a requested booking"),
                            ("active", "Rented out"),
                        ],
                        default="none",
                        max_length=10,
                    ),
                ),
                ("claimed_by", models.UUIDField(blank=True, help_text="Booking holding the claim.", null=True)),
                ("version", models.PositiveIntegerField(default=0)),
                ("is_featured", models.BooleanField(default=False)),
                ("featured_at", models.DateTimeField(blank=True, null=True)),
                ("feature_charge_id", models.CharField(blank=True, max_length=255)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "owner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="scooters",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Scooter",
                "verbose_name_plural": "Scooters",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["exclusivity", "is_active"], name="scooters_sc_exclusi_5b1e0c_idx"),
                    models.Index(fields=["is_featured"], name="scooters_sc_is_feat_a1d3f2_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=(
                            models.Q(exclusivity="none", claimed_by__isnull=True)
                            | models.Q(exclusivity__in=["claimed", "active"], claimed_by__isnull=False)
                        ),
                        name="scooter_claim_matches_exclusivity",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ScooterAvailability",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "weekday",
                    models.PositiveSmallIntegerField(
                        choices=[
                            (0, "Monday"),
                            (1, "Tuesday"),
                            (2, "Wednesday"),
                            (3, "Thursday"),
                            (4, "Friday"),
                            (5, "Saturday"),
                            (6, "Sunday"),
                        ]
                    ),
                ),
                ("is_open", models.BooleanField(default=False)),
                ("open_time", models.TimeField(blank=True, null=True)),
                ("close_time", models.TimeField(blank=True, null=True)),
                (
                    "scooter",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="availability",
                        to="scooters.scooter",
                    ),
                ),
            ],
            options={
                "verbose_name": "Scooter availability",
                "verbose_name_plural": "Scooter availability",
                "ordering": ["scooter", "weekday"],
                "constraints": [
                    models.UniqueConstraint(fields=("scooter", "weekday"), name="unique_scooter_weekday"),
                    models.CheckConstraint(condition=models.Q(weekday__lte=6), name="availability_valid_weekday"),
                    models.CheckConstraint(
                        condition=(
                            models.Q(is_open=False)
                            | models.Q(
                                open_time__isnull=False,
                                close_time__isnull=False,
                                open_time__lte=models.F("close_time"),
                            )
                        ),
                        name="availability_open_before_close",
                    ),
                ],
            },
        ),
    ]
