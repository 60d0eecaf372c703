from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable

from django.conf import settings
from django.utils import timezone

from devices.models import Device
from events.models import AttendanceRecord
from people.models import EnrollmentTask, Person

PERSON_LOOKUP_FIELDS = ("device_pin", "student_id", "employee_id", "biometric_id")


@dataclass(frozen=True)
class DeviceConfig:
    min_out_gap_seconds: int = Device.DEFAULT_MIN_OUT_GAP_SECONDS
    duplicate_window_seconds: int = Device.DEFAULT_DUPLICATE_WINDOW_SECONDS
    attendance_mode: str = Device.MODE_IN_OUT

    @classmethod
    def defaults(cls) -> DeviceConfig:
        return cls(
            min_out_gap_seconds=getattr(settings, "ADMS_DEFAULT_MIN_OUT_GAP_SECONDS", Device.DEFAULT_MIN_OUT_GAP_SECONDS),
            duplicate_window_seconds=getattr(
                settings,
                "ADMS_DEFAULT_DUPLICATE_WINDOW_SECONDS",
                Device.DEFAULT_DUPLICATE_WINDOW_SECONDS,
            ),
        )

    @classmethod
    def from_device(cls, device: Device) -> DeviceConfig:
        fallback = cls.defaults()
        return cls(
            min_out_gap_seconds=(
                fallback.min_out_gap_seconds if device.min_out_gap_seconds is None else device.min_out_gap_seconds
            ),
            duplicate_window_seconds=(
                fallback.duplicate_window_seconds
                if device.duplicate_window_seconds is None
                else device.duplicate_window_seconds
            ),
            attendance_mode=device.attendance_mode or Device.MODE_IN_OUT,
        )


class AttendanceStore:
    """ORM-backed collaborator used by the punch pipeline.

    Tests may pass any object with the same methods to ``PunchIngestor``.
    ``clock`` supplies the creation instant stamped on new records.
    """

    def __init__(self, clock: Callable[[], datetime] | None = None):
        self.clock = clock or timezone.now

    def now(self) -> datetime:
        return self.clock()

    def find_person_by_field(self, field_name: str, value: str) -> Person | None:
        if field_name not in PERSON_LOOKUP_FIELDS:
            raise ValueError(f"Unsupported person lookup field: {field_name}")
        if not value:
            return None
        return Person.objects.filter(**{field_name: value}).order_by("id").first()

    def lock_person(self, person: Person) -> Person:
        return Person.objects.select_for_update().get(pk=person.pk)

    def get_person_attendance_for_day(self, person: Person, day: date) -> list[AttendanceRecord]:
        return list(AttendanceRecord.objects.filter(person=person, date=day).order_by("created_at", "id"))

    def create_attendance_record(self, **fields) -> AttendanceRecord:
        fields.setdefault("created_at", self.now())
        return AttendanceRecord.objects.create(**fields)

    def update_person_enrollment(self, person: Person, status: str, devices_seen: list[str]) -> None:
        person.enrollment_status = status
        person.devices_seen = devices_seen
        update_fields = ["enrollment_status", "devices_seen", "updated_at"]
        if status == Person.ENROLLMENT_ACTIVE and person.enrolled_at is None:
            person.enrolled_at = timezone.now()
            update_fields.append("enrolled_at")
        person.save(update_fields=update_fields)

    def complete_enrollment_task(self, person: Person) -> EnrollmentTask | None:
        task = (
            EnrollmentTask.objects.filter(person=person, status=EnrollmentTask.STATUS_PENDING)
            .order_by("created_at", "id")
            .first()
        )
        if task is None:
            return None
        task.status = EnrollmentTask.STATUS_COMPLETED
        task.completed_at = timezone.now()
        task.save(update_fields=["status", "completed_at"])
        return task

    def get_device(self, device_serial: str) -> Device | None:
        if not device_serial:
            return None
        return Device.objects.filter(serial_number=device_serial).first()

    def get_device_config(self, device_serial: str) -> DeviceConfig | None:
        device = self.get_device(device_serial)
        if device is None:
            return None
        return DeviceConfig.from_device(device)
