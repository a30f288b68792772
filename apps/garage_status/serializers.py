"""Serializers for the garage status admin API."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import (
    GarageStatusHistory,
    GarageTemporaryOverride,
    GarageWeeklySchedule,
    OperationalStatusChoices,
    default_closing_time,
    default_opening_time,
)


class SetStatusSerializer(serializers.Serializer):
    """Input of SetStatus."""

    status = serializers.ChoiceField(choices=OperationalStatusChoices.choices)
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    force_close = serializers.BooleanField(required=False, default=False)


class SetScheduleSerializer(serializers.Serializer):
    """Input of SetSchedule."""

    is_24_7 = serializers.BooleanField(default=False)
    opening_time = serializers.TimeField(required=False)
    closing_time = serializers.TimeField(required=False)
    operating_days = serializers.ListField(
        child=serializers.IntegerField(min_value=0, max_value=6),
        allow_empty=True,
    )
    allow_no_operating_days = serializers.BooleanField(required=False, default=False)

    def validate(self, attrs):  # type: ignore
        if not attrs["is_24_7"]:
            missing = [key for key in ("opening_time", "closing_time") if attrs.get(key) is None]
            if missing:
                raise serializers.ValidationError(
                    {key: ["Required unless the garage is open 24/7."] for key in missing}
                )
        attrs.setdefault("opening_time", default_opening_time())
        attrs.setdefault("closing_time", default_closing_time())
        return attrs


class ApplyOverrideSerializer(serializers.Serializer):
    """Input of ApplyOverride. The future-window check lives in the domain."""

    override_until = serializers.DateTimeField()
    override_action = serializers.ChoiceField(choices=GarageTemporaryOverride.Action.choices)
    reason = serializers.CharField(max_length=255)


class WeeklyScheduleSerializer(serializers.ModelSerializer):
    class Meta:
        model = GarageWeeklySchedule
        fields = [
            "is_24_7",
            "opening_time",
            "closing_time",
            "operating_days",
            "updated_by",
            "updated_at",
        ]
        read_only_fields = fields


class TemporaryOverrideSerializer(serializers.ModelSerializer):
    class Meta:
        model = GarageTemporaryOverride
        fields = [
            "id",
            "override_action",
            "override_until",
            "reason",
            "created_by",
            "created_at",
            "cancelled_by",
            "cancelled_at",
        ]
        read_only_fields = fields


class StatusHistorySerializer(serializers.ModelSerializer):
    class Meta:
        model = GarageStatusHistory
        fields = [
            "id",
            "previous_status",
            "status",
            "reason",
            "changed_by",
            "changed_at",
            "force_close_used",
            "active_bookings",
        ]
        read_only_fields = fields
