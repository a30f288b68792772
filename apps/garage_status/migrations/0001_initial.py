import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models

import apps.garage_status.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("garages", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="GarageOperationalStatus",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("open", "Open"),
                            ("closed", "Closed"),
                            ("maintenance", "Maintenance"),
                            ("emergency_closed", "Emergency closed"),
                        ],
                        default="open",
                        max_length=20,
                    ),
                ),
                ("reason", models.CharField(blank=True, max_length=255)),
                ("changed_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("force_close_used", models.BooleanField(default=False)),
                (
                    "version",
                    models.PositiveIntegerField(
                        default=1,
                        help_text="Incremented on every write; used to detect lost updates.",
                    ),
                ),
                (
                    "changed_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="garage_status_changes",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "garage",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="operational_status",
                        to="garages.garage",
                    ),
                ),
            ],
            options={
                "verbose_name": "Garage operational status",
                "verbose_name_plural": "Garage operational statuses",
                "indexes": [models.Index(fields=["status"], name="garage_status_status_idx")],
            },
        ),
        migrations.CreateModel(
            name="GarageStatusHistory",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "previous_status",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("open", "Open"),
                            ("closed", "Closed"),
                            ("maintenance", "Maintenance"),
                            ("emergency_closed", "Emergency closed"),
                        ],
                        max_length=20,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("open", "Open"),
                            ("closed", "Closed"),
                            ("maintenance", "Maintenance"),
                            ("emergency_closed", "Emergency closed"),
                        ],
                        max_length=20,
                    ),
                ),
                ("reason", models.CharField(blank=True, max_length=255)),
                ("changed_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("force_close_used", models.BooleanField(default=False)),
                (
                    "active_bookings",
                    models.PositiveIntegerField(
                        blank=True,
                        help_text="Active booking count observed when the change was made.",
                        null=True,
                    ),
                ),
                (
                    "changed_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "garage",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="status_history",
                        to="garages.garage",
                    ),
                ),
            ],
            options={
                "verbose_name": "Garage status history entry",
                "verbose_name_plural": "Garage status history",
                "ordering": ["-changed_at", "-id"],
                "indexes": [models.Index(fields=["garage", "changed_at"], name="garage_status_hist_idx")],
            },
        ),
        migrations.CreateModel(
            name="GarageWeeklySchedule",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("is_24_7", models.BooleanField(default=False)),
                ("opening_time", models.TimeField(default=apps.garage_status.models.default_opening_time)),
                (
                    "closing_time",
                    models.TimeField(
                        default=apps.garage_status.models.default_closing_time,
                        help_text="May be earlier than the opening time for overnight windows.",
                    ),
                ),
                (
                    "operating_days",
                    models.JSONField(
                        default=apps.garage_status.models.default_operating_days,
                        help_text="Weekday numbers, Monday=0 ... Sunday=6.",
                    ),
                ),
                ("updated_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("version", models.PositiveIntegerField(default=1)),
                (
                    "garage",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="weekly_schedule",
                        to="garages.garage",
                    ),
                ),
                (
                    "updated_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Garage weekly schedule",
                "verbose_name_plural": "Garage weekly schedules",
            },
        ),
        migrations.CreateModel(
            name="GarageTemporaryOverride",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("override_until", models.DateTimeField()),
                (
                    "override_action",
                    models.CharField(
                        choices=[("force_open", "Force open"), ("force_closed", "Force closed")],
                        max_length=20,
                    ),
                ),
                ("reason", models.CharField(max_length=255)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                (
                    "cancelled_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="garage_overrides",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "garage",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="temporary_overrides",
                        to="garages.garage",
                    ),
                ),
            ],
            options={
                "verbose_name": "Garage temporary override",
                "verbose_name_plural": "Garage temporary overrides",
                "ordering": ["-created_at", "-id"],
                "indexes": [models.Index(fields=["garage", "override_until"], name="garage_override_until_idx")],
            },
        ),
    ]
