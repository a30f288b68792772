"""URL routing for the garage status admin API."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import SimpleRouter  # type: ignore

from .views import GarageStatusViewSet

# Listing lives at the prefix itself, so no browsable root view
router = SimpleRouter()
router.register(r"", GarageStatusViewSet, basename="garage")

urlpatterns = [
    path("", include(router.urls)),
]
