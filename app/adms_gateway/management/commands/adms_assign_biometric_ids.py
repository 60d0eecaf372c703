from django.core.management.base import BaseCommand
from django.db.models import Q

from people.models import Person
from people.services import assign_missing_ids


class Command(BaseCommand):
    help = "Allocate biometric IDs and device PINs to people missing them"

    def add_arguments(self, parser):
        parser.add_argument("--dry-run", action="store_true", help="Only report who would be updated")

    def handle(self, *args, **options):
        people = Person.objects.filter(Q(biometric_id="") | Q(device_pin="")).order_by("id")

        if options["dry_run"]:
            count = people.count()
            self.stdout.write(f"{count} people missing biometric IDs")
            return

        assigned = 0
        for person in people.iterator():
            if assign_missing_ids(person):
                assigned += 1
                self.stdout.write(f"{person.external_id}: {person.biometric_id} (PIN {person.device_pin})")

        self.stdout.write(self.style.SUCCESS(f"Assigned biometric IDs to {assigned} people"))
