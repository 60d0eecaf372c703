from __future__ import annotations

import logging

from people.models import Person

logger = logging.getLogger(__name__)


def activate_enrollment(store, person: Person, device_serial: str) -> bool:
    """Flip a pending person to active on their first accepted scan.

    Returns ``True`` when the person was activated by this call.
    """
    if person.is_active_enrollment:
        return False

    devices_seen = list(person.devices_seen or [])
    if device_serial and device_serial not in devices_seen:
        devices_seen.append(device_serial)

    store.update_person_enrollment(person, Person.ENROLLMENT_ACTIVE, devices_seen)
    task = store.complete_enrollment_task(person)

    logger.info(
        "Enrollment activated on first punch",
        extra={
            "person": person.external_id,
            "device_serial": device_serial,
            "enrollment_task_id": task.id if task else None,
        },
    )
    return True
