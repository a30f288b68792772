"""Admin API for garage operational status.

Every endpoint answers with the envelope ``{success, message, data}``.
Failures carry the specific reason (e.g. the number of bookings blocking a
close); a resolver failure is reported as such, never replaced by a guess.
"""

from __future__ import annotations

import logging

from django.utils import timezone  # type: ignore
from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.garages.models import Garage

from .application.command_handlers import (
    ApplyOverrideCommand,
    ApplyOverrideHandler,
    CancelOverrideCommand,
    CancelOverrideHandler,
    CommandResult,
    SetScheduleCommand,
    SetScheduleHandler,
    SetStatusCommand,
    SetStatusHandler,
)
from .application.queries import StatusResolverService
from .domain.entities import ManualStatus, OverrideAction, winning_override
from .domain.exceptions import (
    ActiveBookingsConflict,
    ConcurrencyConflict,
    GarageStatusError,
    NotFound,
    ValidationError,
)
from .filters import GarageStatusFilterSet
from .models import GarageWeeklySchedule
from .repositories import OperationalStatusRepository, TemporaryOverrideRepository
from .serializers import (
    ApplyOverrideSerializer,
    SetScheduleSerializer,
    SetStatusSerializer,
    StatusHistorySerializer,
    TemporaryOverrideSerializer,
    WeeklyScheduleSerializer,
)

logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = (
    (ActiveBookingsConflict, status.HTTP_409_CONFLICT),
    (ConcurrencyConflict, status.HTTP_409_CONFLICT),
    (NotFound, status.HTTP_404_NOT_FOUND),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
)


def envelope(success: bool, message: str, data=None, status_code: int = status.HTTP_200_OK) -> Response:
    body = {"success": success, "message": message}
    if data is not None:
        body["data"] = data
    return Response(body, status=status_code)


def result_response(result: CommandResult) -> Response:
    data = dict(result.data)
    if result.warnings:
        data["warnings"] = result.warnings
    return envelope(True, result.message, data)


def error_response(exc: GarageStatusError) -> Response:
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for error_class, code in ERROR_STATUS_CODES:
        if isinstance(exc, error_class):
            status_code = code
            break

    data = {"code": exc.code}
    if isinstance(exc, ActiveBookingsConflict):
        data["active_bookings"] = exc.count
    if isinstance(exc, NotFound):
        data["garage_ids"] = exc.garage_ids
    return envelope(False, exc.message, data, status_code)


def invalid_input_response(errors) -> Response:
    return envelope(False, "Invalid input", {"code": "validation_error", "errors": errors}, status.HTTP_400_BAD_REQUEST)


class GarageStatusViewSet(viewsets.GenericViewSet):
    """Dashboard listing and admin commands for garage operational status."""

    queryset = Garage.objects.all()
    permission_classes = [permissions.IsAdminUser]
    filter_backends = [DjangoFilterBackend]
    filterset_class = GarageStatusFilterSet

    def _garage_or_error(self, pk):
        try:
            garage_id = int(pk)
        except (TypeError, ValueError):
            return None, envelope(False, f"Garage {pk} not found", status_code=status.HTTP_404_NOT_FOUND)
        if not Garage.objects.filter(pk=garage_id).exists():
            return None, envelope(False, f"Garage {pk} not found", status_code=status.HTTP_404_NOT_FOUND)
        return garage_id, None

    def _run(self, handler, command) -> Response:
        try:
            result = handler.handle(command)
        except GarageStatusError as exc:
            logger.warning(f"{type(command).__name__} on garage {command.garage_id} failed: {exc.message}")
            return error_response(exc)
        return result_response(result)

    def list(self, request):  # type: ignore
        """
        Effective status of every garage matching the filters.

        GET /api/v1/garages/?city=...&manual_status=closed&effective_status=open
        """
        garages = list(self.filter_queryset(self.get_queryset()))
        try:
            resolved = StatusResolverService().resolve_many([garage.pk for garage in garages])
        except NotFound as exc:
            logger.error(f"Dashboard listing hit uninitialized garages: {exc.garage_ids}")
            return error_response(exc)

        wanted = request.query_params.get("effective_status")
        items = []
        for garage in garages:
            effective = resolved[garage.pk]
            if wanted and effective.status.value != wanted:
                continue
            item = effective.to_dict()
            item["name"] = garage.name
            item["city"] = garage.city
            items.append(item)
        return envelope(True, f"{len(items)} garages", items)

    def retrieve(self, request, pk=None):  # type: ignore
        """Effective status plus the manual status, schedule and active override."""
        garage_id, error = self._garage_or_error(pk)
        if error:
            return error

        service = StatusResolverService()
        now = timezone.now()
        try:
            rows = service.load_rows([garage_id], now)[garage_id]
        except NotFound as exc:
            return error_response(exc)
        effective = service.resolve_rows(rows, now)

        data = effective.to_dict()
        data["manual_status"] = {
            "status": rows.status.status.value,
            "reason": rows.status.reason,
            "changed_by": rows.status.changed_by,
            "changed_at": rows.status.changed_at.isoformat() if rows.status.changed_at else None,
            "force_close_used": rows.status.force_close_used,
        }
        data["schedule"] = WeeklyScheduleSerializer(
            GarageWeeklySchedule.objects.get(garage_id=garage_id)
        ).data
        # The override that decides the status right now
        winner = winning_override(rows.overrides, now)
        data["active_override"] = None
        if winner is not None:
            data["active_override"] = TemporaryOverrideSerializer(
                TemporaryOverrideRepository().history(garage_id).get(pk=winner.id)
            ).data
        return envelope(True, f"Garage is {effective.status.value}", data)

    @action(detail=True, methods=["post"], url_path="status")
    def set_status(self, request, pk=None):  # type: ignore
        """
        POST /api/v1/garages/{id}/status/

        Closing with upcoming or active bookings requires ``force_close``.
        """
        garage_id, error = self._garage_or_error(pk)
        if error:
            return error
        serializer = SetStatusSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_input_response(serializer.errors)

        command = SetStatusCommand(
            garage_id=garage_id,
            status=ManualStatus(serializer.validated_data["status"]),
            reason=serializer.validated_data["reason"],
            actor_id=request.user.pk,
            force_close=serializer.validated_data["force_close"],
        )
        return self._run(SetStatusHandler(), command)

    @action(detail=True, methods=["get"], url_path="status-history")
    def status_history(self, request, pk=None):  # type: ignore
        garage_id, error = self._garage_or_error(pk)
        if error:
            return error
        entries = OperationalStatusRepository().history(garage_id)
        return envelope(True, "Status history", StatusHistorySerializer(entries, many=True).data)

    @action(detail=True, methods=["put"], url_path="schedule")
    def set_schedule(self, request, pk=None):  # type: ignore
        """PUT /api/v1/garages/{id}/schedule/ replaces the weekly schedule."""
        garage_id, error = self._garage_or_error(pk)
        if error:
            return error
        serializer = SetScheduleSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_input_response(serializer.errors)

        data = serializer.validated_data
        command = SetScheduleCommand(
            garage_id=garage_id,
            is_24_7=data["is_24_7"],
            opening_time=data["opening_time"],
            closing_time=data["closing_time"],
            operating_days=frozenset(data["operating_days"]),
            actor_id=request.user.pk,
            allow_no_operating_days=data["allow_no_operating_days"],
        )
        return self._run(SetScheduleHandler(), command)

    @action(detail=True, methods=["get", "post"], url_path="overrides")
    def overrides(self, request, pk=None):  # type: ignore
        """
        GET  /api/v1/garages/{id}/overrides/ lists every override ever applied.
        POST /api/v1/garages/{id}/overrides/ applies a new one.
        """
        garage_id, error = self._garage_or_error(pk)
        if error:
            return error

        if request.method == "GET":
            rows = TemporaryOverrideRepository().history(garage_id)
            return envelope(True, "Override history", TemporaryOverrideSerializer(rows, many=True).data)

        serializer = ApplyOverrideSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_input_response(serializer.errors)
        command = ApplyOverrideCommand(
            garage_id=garage_id,
            override_until=serializer.validated_data["override_until"],
            action=OverrideAction(serializer.validated_data["override_action"]),
            reason=serializer.validated_data["reason"],
            actor_id=request.user.pk,
        )
        return self._run(ApplyOverrideHandler(), command)

    @action(detail=True, methods=["post"], url_path="overrides/cancel")
    def cancel_override(self, request, pk=None):  # type: ignore
        garage_id, error = self._garage_or_error(pk)
        if error:
            return error
        command = CancelOverrideCommand(garage_id=garage_id, actor_id=request.user.pk)
        return self._run(CancelOverrideHandler(), command)
