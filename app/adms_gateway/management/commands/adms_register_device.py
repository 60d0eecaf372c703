from django.core.management.base import BaseCommand, CommandError

from adms_gateway.management.commands.adms_configure_mode import VALID_MODES, normalize_mode
from devices.models import Device


class Command(BaseCommand):
    help = "Register (or update) an ADMS biometric terminal"

    def add_arguments(self, parser):
        parser.add_argument("--serial", required=True, help="Serial number sent by the device in the SN header")
        parser.add_argument("--name", default="")
        parser.add_argument("--model", default="X2008")
        parser.add_argument("--manufacturer", default="eSSL")
        parser.add_argument("--location", default="")
        parser.add_argument("--mode", default=Device.MODE_IN_OUT, help=f"One of {', '.join(VALID_MODES)}")
        parser.add_argument("--duplicate-window", type=int, default=Device.DEFAULT_DUPLICATE_WINDOW_SECONDS)
        parser.add_argument("--min-out-gap", type=int, default=Device.DEFAULT_MIN_OUT_GAP_SECONDS)

    def handle(self, *args, **options):
        serial = options["serial"].strip()
        mode = normalize_mode(options["mode"])

        if not serial:
            raise CommandError("--serial must not be empty")
        if mode not in VALID_MODES:
            raise CommandError(f"Invalid mode '{options['mode']}'. Must be one of: {', '.join(VALID_MODES)}")
        if options["duplicate_window"] <= 0 or options["min_out_gap"] <= 0:
            raise CommandError("--duplicate-window and --min-out-gap must be positive")

        device, created = Device.objects.update_or_create(
            serial_number=serial,
            defaults={
                "name": options["name"],
                "model": options["model"],
                "manufacturer": options["manufacturer"],
                "location": options["location"],
                "protocol": "ADMS",
                "attendance_mode": mode,
                "duplicate_window_seconds": options["duplicate_window"],
                "min_out_gap_seconds": options["min_out_gap"],
            },
        )

        verb = "Registered" if created else "Updated"
        self.stdout.write(
            self.style.SUCCESS(
                f"{verb} device serial={device.serial_number} mode={device.attendance_mode} "
                f"duplicate_window={device.duplicate_window_seconds}s min_out_gap={device.min_out_gap_seconds}s"
            )
        )
