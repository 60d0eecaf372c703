from __future__ import annotations

from django.db import transaction

from people.models import BiometricIdCounter, EnrollmentTask, Person

BIOMETRIC_COUNTER_NAME = "biometric_id"


def format_biometric_id(number: int) -> tuple[str, str]:
    pin = str(number).zfill(4)
    return f"BIO-{pin}", pin


def allocate_biometric_id() -> tuple[str, str]:
    """Reserve the next ``BIO-nnnn`` id and its matching device PIN."""
    with transaction.atomic():
        counter, _ = BiometricIdCounter.objects.select_for_update().get_or_create(name=BIOMETRIC_COUNTER_NAME)
        counter.last_number += 1
        counter.save(update_fields=["last_number", "updated_at"])
    return format_biometric_id(counter.last_number)


def assign_missing_ids(person: Person) -> bool:
    if person.biometric_id and person.device_pin:
        return False

    biometric_id, pin = allocate_biometric_id()
    update_fields = ["updated_at"]
    if not person.biometric_id:
        person.biometric_id = biometric_id
        update_fields.append("biometric_id")
    if not person.device_pin:
        person.device_pin = pin
        update_fields.append("device_pin")
    if person.pk:
        person.save(update_fields=update_fields)
    return True


def enroll_person(person: Person, template_id: str, device_ids: list[str] | None = None) -> Person:
    with transaction.atomic():
        person.device_pin = template_id
        person.enrollment_status = Person.ENROLLMENT_PENDING
        person.enrolled_at = None
        person.devices_seen = sorted({serial for serial in (device_ids or []) if serial})
        person.save(update_fields=["device_pin", "enrollment_status", "enrolled_at", "devices_seen", "updated_at"])

        has_open_task = EnrollmentTask.objects.filter(
            person=person,
            status=EnrollmentTask.STATUS_PENDING,
        ).exists()
        if not has_open_task:
            EnrollmentTask.objects.create(person=person)
    return person
