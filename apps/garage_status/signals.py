"""Seed status rows whenever a garage is created."""

from django.db.models.signals import post_save
from django.dispatch import receiver

from apps.garages.models import Garage

from .services import initialize_garage_status


@receiver(post_save, sender=Garage)
def initialize_status_for_new_garage(sender, instance, created, raw=False, **kwargs):
    """Seed OPEN status and the default schedule for a new garage."""
    if created and not raw:
        initialize_garage_status(instance.pk)
