"""FilterSet for the garage status dashboard listing."""

from __future__ import annotations

import django_filters  # type: ignore

from apps.garages.models import Garage

from .models import OperationalStatusChoices


class GarageStatusFilterSet(django_filters.FilterSet):
    """Filters applied in the database, before effective status is resolved."""

    city = django_filters.CharFilter(field_name="city", lookup_expr="icontains")
    name = django_filters.CharFilter(field_name="name", lookup_expr="icontains")
    manual_status = django_filters.ChoiceFilter(
        field_name="operational_status__status",
        choices=OperationalStatusChoices.choices,
    )
    # CSV of garage ids
    ids = django_filters.CharFilter(method="filter_ids")

    class Meta:
        model = Garage
        fields = ["city", "name", "is_active"]

    def filter_ids(self, queryset, name, value):  # type: ignore
        if not value:
            return queryset
        try:
            ids = [int(x) for x in str(value).replace(" ", "").split(",") if x]
        except ValueError:
            return queryset.none()
        return queryset.filter(pk__in=ids)
