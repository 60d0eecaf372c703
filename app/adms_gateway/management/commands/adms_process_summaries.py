import time

from django.core.management.base import BaseCommand

from events.services.summaries import process_pending_jobs


class Command(BaseCommand):
    help = "Recompute daily attendance summaries queued by recorded punches"

    def add_arguments(self, parser):
        parser.add_argument("--once", action="store_true", help="Process one batch and exit")
        parser.add_argument("--batch-size", type=int, default=100)
        parser.add_argument("--interval", type=float, default=30.0, help="Seconds between polls")

    def handle(self, *args, **options):
        while True:
            done, failed = process_pending_jobs(limit=options["batch_size"])
            message = f"Processed {done} summary jobs ({failed} failed)"
            self.stdout.write(self.style.SUCCESS(message) if not failed else self.style.WARNING(message))

            if options["once"]:
                return
            time.sleep(options["interval"])
