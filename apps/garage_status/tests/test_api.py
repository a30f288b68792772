"""Integration tests for the garage status admin API."""

from __future__ import annotations

from datetime import timedelta
from unittest import mock

from django.contrib.auth import get_user_model
from django.db import OperationalError
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import Booking
from apps.garage_status.domain.exceptions import ConcurrencyConflict
from apps.garage_status.models import (
    GarageOperationalStatus,
    GarageStatusHistory,
    GarageTemporaryOverride,
    GarageWeeklySchedule,
)
from apps.garage_status.repositories import OperationalStatusRepository
from apps.garages.models import Garage

User = get_user_model()


class GarageStatusAPITests(APITestCase):
    """Covers the dashboard listing, manual status, schedule and overrides."""

    def setUp(self) -> None:
        self.admin = User.objects.create_user(
            username="dispatcher",
            email="dispatcher@example.com",
            password="AdminPass123",
            is_staff=True,
        )
        self.garage = Garage.objects.create(name="Central Garage", city="Springfield", capacity=40)
        self.other = Garage.objects.create(name="Harbor Garage", city="Shelbyville", capacity=25)
        # Results must not depend on the wall clock
        GarageWeeklySchedule.objects.update(is_24_7=True)
        self.client.force_authenticate(self.admin)

    def _book(self, garage: Garage, count: int) -> None:
        starts_at = timezone.now() + timedelta(days=1)
        for _ in range(count):
            Booking.objects.create(garage=garage, starts_at=starts_at, ends_at=starts_at + timedelta(hours=3))

    def test_list_returns_effective_status_of_every_garage(self) -> None:
        response = self.client.get(reverse("garage-list"))

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertTrue(response.data["success"])
        self.assertEqual(response.data["message"], "2 garages")
        items = {item["garage_id"]: item for item in response.data["data"]}
        self.assertEqual(items[self.garage.pk]["effective_status"], "open")
        self.assertEqual(items[self.garage.pk]["reason"], "open 24/7")
        self.assertEqual(items[self.garage.pk]["source"], "schedule")

    def test_list_filters_by_effective_and_manual_status(self) -> None:
        self.client.post(
            reverse("garage-set-status", args=[self.other.pk]),
            {"status": "maintenance", "reason": "Resurfacing"},
            format="json",
        )

        response = self.client.get(reverse("garage-list"), {"effective_status": "maintenance"})
        self.assertEqual([item["garage_id"] for item in response.data["data"]], [self.other.pk])

        response = self.client.get(reverse("garage-list"), {"manual_status": "open"})
        self.assertEqual([item["garage_id"] for item in response.data["data"]], [self.garage.pk])

        response = self.client.get(reverse("garage-list"), {"city": "spring"})
        self.assertEqual(response.data["message"], "1 garages")

    def test_list_reports_uninitialized_garages(self) -> None:
        GarageOperationalStatus.objects.filter(garage=self.other).delete()

        response = self.client.get(reverse("garage-list"))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND, response.data)
        self.assertFalse(response.data["success"])
        self.assertEqual(response.data["data"]["code"], "not_found")
        self.assertEqual(response.data["data"]["garage_ids"], [self.other.pk])

    def test_detail_includes_manual_status_and_schedule(self) -> None:
        response = self.client.get(reverse("garage-detail", args=[self.garage.pk]))

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["message"], "Garage is open")
        data = response.data["data"]
        self.assertEqual(data["manual_status"]["status"], "open")
        self.assertTrue(data["schedule"]["is_24_7"])
        self.assertIsNone(data["active_override"])

    def test_unknown_garage_is_404(self) -> None:
        response = self.client.post(
            reverse("garage-set-status", args=[999999]),
            {"status": "open"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertFalse(response.data["success"])

    def test_close_with_bookings_is_refused(self) -> None:
        self._book(self.garage, 2)

        response = self.client.post(
            reverse("garage-set-status", args=[self.garage.pk]),
            {"status": "closed", "reason": "Public holiday"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT, response.data)
        self.assertFalse(response.data["success"])
        self.assertEqual(response.data["message"], "Cannot close: 2 active bookings; use Force Close")
        self.assertEqual(response.data["data"]["active_bookings"], 2)
        self.assertEqual(response.data["data"]["code"], "active_bookings_conflict")
        self.assertEqual(GarageOperationalStatus.objects.get(garage=self.garage).status, "open")

    def test_force_close_with_bookings(self) -> None:
        self._book(self.garage, 2)

        response = self.client.post(
            reverse("garage-set-status", args=[self.garage.pk]),
            {"status": "closed", "reason": "Public holiday", "force_close": True},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertTrue(response.data["success"])
        self.assertEqual(response.data["message"], "Garage status set to closed (force close)")
        self.assertEqual(Booking.objects.filter(garage=self.garage).count(), 2)

        detail = self.client.get(reverse("garage-detail", args=[self.garage.pk]))
        self.assertEqual(detail.data["data"]["effective_status"], "closed")

    def test_close_requires_reason(self) -> None:
        response = self.client.post(
            reverse("garage-set-status", args=[self.garage.pk]),
            {"status": "emergency_closed"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)
        self.assertEqual(response.data["data"]["code"], "validation_error")

    def test_unknown_status_is_invalid_input(self) -> None:
        response = self.client.post(
            reverse("garage-set-status", args=[self.garage.pk]),
            {"status": "half_open", "reason": "?"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["message"], "Invalid input")
        self.assertIn("status", response.data["data"]["errors"])

    def test_status_history_lists_changes(self) -> None:
        self.client.post(
            reverse("garage-set-status", args=[self.garage.pk]),
            {"status": "maintenance", "reason": "Lift repair"},
            format="json",
        )

        response = self.client.get(reverse("garage-status-history", args=[self.garage.pk]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        entries = response.data["data"]
        self.assertEqual(len(entries), 2)
        self.assertEqual(entries[0]["status"], "maintenance")
        self.assertEqual(entries[0]["previous_status"], "open")
        self.assertEqual(entries[0]["changed_by"], self.admin.pk)

    def test_replace_schedule(self) -> None:
        response = self.client.put(
            reverse("garage-set-schedule", args=[self.garage.pk]),
            {"opening_time": "09:00", "closing_time": "18:00", "operating_days": [0, 1, 2, 3, 4]},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["message"], "Operating schedule updated")
        self.assertEqual(response.data["data"]["operating_days"], [0, 1, 2, 3, 4])
        schedule = GarageWeeklySchedule.objects.get(garage=self.garage)
        self.assertFalse(schedule.is_24_7)
        self.assertEqual(schedule.updated_by_id, self.admin.pk)

    def test_schedule_without_days_needs_acknowledgement(self) -> None:
        url = reverse("garage-set-schedule", args=[self.garage.pk])
        payload = {"opening_time": "09:00", "closing_time": "18:00", "operating_days": []}

        refused = self.client.put(url, payload, format="json")
        self.assertEqual(refused.status_code, status.HTTP_400_BAD_REQUEST, refused.data)
        self.assertEqual(refused.data["data"]["code"], "invalid_schedule")

        accepted = self.client.put(url, {**payload, "allow_no_operating_days": True}, format="json")
        self.assertEqual(accepted.status_code, status.HTTP_200_OK, accepted.data)
        self.assertTrue(accepted.data["data"]["warnings"])

    def test_schedule_requires_times_unless_24_7(self) -> None:
        response = self.client.put(
            reverse("garage-set-schedule", args=[self.garage.pk]),
            {"operating_days": [0]},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("opening_time", response.data["data"]["errors"])

    def test_apply_and_cancel_override(self) -> None:
        until = timezone.now() + timedelta(hours=2)
        overrides_url = reverse("garage-overrides", args=[self.garage.pk])

        applied = self.client.post(
            overrides_url,
            {"override_until": until.isoformat(), "override_action": "force_closed", "reason": "Film shoot"},
            format="json",
        )
        self.assertEqual(applied.status_code, status.HTTP_200_OK, applied.data)
        self.assertTrue(applied.data["message"].startswith("Temporary override applied until"))

        detail = self.client.get(reverse("garage-detail", args=[self.garage.pk]))
        self.assertEqual(detail.data["data"]["effective_status"], "closed")
        self.assertEqual(detail.data["data"]["source"], "override")
        self.assertEqual(detail.data["data"]["active_override"]["id"], applied.data["data"]["id"])

        cancelled = self.client.post(reverse("garage-cancel-override", args=[self.garage.pk]))
        self.assertEqual(cancelled.status_code, status.HTTP_200_OK, cancelled.data)
        self.assertEqual(cancelled.data["message"], "Temporary override cancelled")

        detail = self.client.get(reverse("garage-detail", args=[self.garage.pk]))
        self.assertEqual(detail.data["data"]["effective_status"], "open")

        history = self.client.get(overrides_url)
        self.assertEqual(len(history.data["data"]), 1)
        self.assertEqual(history.data["data"][0]["cancelled_by"], self.admin.pk)

    def test_override_in_past_is_rejected(self) -> None:
        response = self.client.post(
            reverse("garage-overrides", args=[self.garage.pk]),
            {
                "override_until": (timezone.now() - timedelta(minutes=1)).isoformat(),
                "override_action": "force_open",
                "reason": "Too late",
            },
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)
        self.assertEqual(response.data["data"]["code"], "invalid_override_window")
        self.assertFalse(GarageTemporaryOverride.objects.exists())

    def test_cancel_without_override_is_noop(self) -> None:
        response = self.client.post(reverse("garage-cancel-override", args=[self.garage.pk]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["message"], "No active override to cancel")

    def test_non_staff_user_is_forbidden(self) -> None:
        customer = User.objects.create_user(username="driver", password="DriverPass123")
        self.client.force_authenticate(customer)

        response = self.client.post(
            reverse("garage-set-status", args=[self.garage.pk]),
            {"status": "closed", "reason": "x", "force_close": True},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(GarageStatusHistory.objects.filter(garage=self.garage).count(), 1)

    def test_detail_shows_only_the_winning_override(self) -> None:
        overrides_url = reverse("garage-overrides", args=[self.garage.pk])
        self.client.post(
            overrides_url,
            {
                "override_until": (timezone.now() + timedelta(days=1)).isoformat(),
                "override_action": "force_closed",
                "reason": "Roadworks",
            },
            format="json",
        )
        newer = self.client.post(
            overrides_url,
            {
                "override_until": (timezone.now() + timedelta(hours=2)).isoformat(),
                "override_action": "force_open",
                "reason": "Stadium event",
            },
            format="json",
        )

        detail = self.client.get(reverse("garage-detail", args=[self.garage.pk]))

        data = detail.data["data"]
        self.assertEqual(data["effective_status"], "open")
        self.assertEqual(data["active_override"]["id"], newer.data["data"]["id"])
        self.assertEqual(data["active_override"]["override_action"], "force_open")

    def test_force_flag_on_open_is_not_recorded(self) -> None:
        response = self.client.post(
            reverse("garage-set-status", args=[self.garage.pk]),
            {"status": "open", "force_close": True},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["message"], "Garage status set to open")
        self.assertFalse(response.data["data"]["force_close_used"])
        self.assertFalse(GarageOperationalStatus.objects.get(garage=self.garage).force_close_used)
        self.assertFalse(GarageStatusHistory.objects.filter(garage=self.garage).first().force_close_used)

    def test_lost_update_returns_conflict_envelope(self) -> None:
        with mock.patch.object(
            OperationalStatusRepository, "save", side_effect=ConcurrencyConflict(self.garage.pk)
        ):
            response = self.client.post(
                reverse("garage-set-status", args=[self.garage.pk]),
                {"status": "maintenance", "reason": "Lift repair"},
                format="json",
            )

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT, response.data)
        self.assertFalse(response.data["success"])
        self.assertEqual(response.data["data"]["code"], "concurrency_conflict")
        self.assertIn("modified concurrently", response.data["message"])
        self.assertEqual(GarageOperationalStatus.objects.get(garage=self.garage).status, "open")

    def test_lock_wait_timeout_returns_conflict_envelope(self) -> None:
        timeout = OperationalError("canceling statement due to statement timeout")
        with mock.patch.object(OperationalStatusRepository, "get", side_effect=timeout):
            response = self.client.post(
                reverse("garage-set-status", args=[self.garage.pk]),
                {"status": "closed", "reason": "Flood", "force_close": True},
                format="json",
            )

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT, response.data)
        self.assertFalse(response.data["success"])
        self.assertEqual(response.data["data"]["code"], "lock_timeout")
        self.assertEqual(
            response.data["message"],
            f"Garage {self.garage.pk} is being changed by another admin; try again shortly",
        )
