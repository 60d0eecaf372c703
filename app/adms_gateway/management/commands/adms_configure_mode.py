from django.core.management.base import BaseCommand, CommandError

from devices.models import Device

MODE_ALIASES = {
    "IN_ONLY": Device.MODE_CHECK_IN_ONLY,
    "OUT_ONLY": Device.MODE_CHECK_OUT_ONLY,
}
VALID_MODES = [choice for choice, _ in Device.ATTENDANCE_MODE_CHOICES]

MODE_BEHAVIOUR = {
    Device.MODE_CHECK_IN_ONLY: "all punches after the first are recorded as IN",
    Device.MODE_CHECK_OUT_ONLY: "all punches after the first are recorded as OUT",
    Device.MODE_IN_OUT: "punches toggle between IN and OUT",
}


def normalize_mode(value: str) -> str:
    mode = value.strip().upper().replace("-", "_")
    return MODE_ALIASES.get(mode, mode)


class Command(BaseCommand):
    help = "Set the attendance mode of a registered device"

    def add_arguments(self, parser):
        parser.add_argument("serial", help="Device serial number")
        parser.add_argument("mode", help=f"One of {', '.join(VALID_MODES)}")

    def handle(self, *args, **options):
        mode = normalize_mode(options["mode"])
        if mode not in VALID_MODES:
            raise CommandError(f"Invalid mode '{options['mode']}'. Must be one of: {', '.join(VALID_MODES)}")

        device = Device.objects.filter(serial_number=options["serial"].strip()).first()
        if device is None:
            raise CommandError(f"Device not found: {options['serial']}")

        device.attendance_mode = mode
        device.save(update_fields=["attendance_mode", "updated_at"])

        self.stdout.write(
            self.style.SUCCESS(f"Device {device.serial_number} set to {mode}: {MODE_BEHAVIOUR[mode]}")
        )
