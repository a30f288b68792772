from django.core.management.base import BaseCommand
from django.db.models import Q

from apps.garage_status.services import initialize_garage_status
from apps.garages.models import Garage


class Command(BaseCommand):
    help = "Seeds missing operational status and schedule rows for existing garages"

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Only report garages that are missing rows",
        )

    def handle(self, *args, **options):
        missing = Garage.objects.filter(
            Q(operational_status__isnull=True) | Q(weekly_schedule__isnull=True)
        ).order_by("pk")

        self.stdout.write(f"Found {missing.count()} garages without status rows")

        if options["dry_run"]:
            for garage in missing:
                self.stdout.write(f"  would initialize garage {garage.pk} ({garage.name})")
            return

        fixed = 0
        for garage in missing:
            status_created, schedule_created = initialize_garage_status(garage.pk)
            if status_created or schedule_created:
                fixed += 1
                self.stdout.write(f"Initialized garage {garage.pk} ({garage.name})")

        self.stdout.write(self.style.SUCCESS(f"Initialized {fixed} garages"))
