from __future__ import annotations

import logging
from datetime import date, datetime, time

from django.conf import settings
from django.utils import timezone

from adms_gateway.services.adms_parser import ScanEvent
from devices.models import Device
from events.models import AttendanceRecord
from events.signals import punch_recorded
from events.timezones import attendance_zone
from people.models import Person

logger = logging.getLogger(__name__)


def _parse_clock(value: str, default: time) -> time:
    try:
        hour, minute = (int(part) for part in str(value).split(":", 1))
        return time(hour, minute)
    except (TypeError, ValueError):
        return default


def late_threshold(role: str) -> time:
    thresholds = getattr(settings, "ATTENDANCE_LATE_AFTER", {})
    raw = thresholds.get(role) or thresholds.get("default") or "09:00"
    return _parse_clock(raw, time(9, 0))


def early_out_threshold() -> time:
    return _parse_clock(getattr(settings, "ATTENDANCE_EARLY_OUT_BEFORE", "16:00"), time(16, 0))


def punch_status(punch_type: str, punched_at: datetime, role: str) -> str:
    local = timezone.localtime(punched_at, attendance_zone())
    clock = time(local.hour, local.minute)
    if punch_type == AttendanceRecord.TYPE_IN and clock > late_threshold(role):
        return AttendanceRecord.STATUS_LATE
    if punch_type == AttendanceRecord.TYPE_OUT and clock < early_out_threshold():
        return AttendanceRecord.STATUS_EARLY_OUT
    return AttendanceRecord.STATUS_PRESENT


def duration_since_first_in(punched_at: datetime, todays_records: list[AttendanceRecord]) -> int | None:
    ins = [record.punched_at for record in todays_records if record.punch_type == AttendanceRecord.TYPE_IN]
    if not ins:
        return None
    minutes = int((punched_at - min(ins)).total_seconds() // 60)
    return minutes if minutes > 0 else None


def record_punch(
    store,
    *,
    person: Person,
    event: ScanEvent,
    punch_type: str,
    punched_at: datetime,
    day: date,
    device: Device | None,
    todays_records: list[AttendanceRecord],
    source: str = AttendanceRecord.SOURCE_ADMS,
) -> AttendanceRecord:
    duration = None
    if punch_type == AttendanceRecord.TYPE_OUT:
        duration = duration_since_first_in(punched_at, todays_records)

    record = store.create_attendance_record(
        person=person,
        device=device,
        device_serial=event.device_serial,
        template_id=event.template_id,
        date=day,
        punch_type=punch_type,
        punched_at=punched_at,
        status=punch_status(punch_type, punched_at, person.role),
        duration_minutes=duration,
        raw_line=event.raw_line,
        source=source,
    )

    # Summary recomputation is downstream and must never fail the punch.
    for receiver, response in punch_recorded.send_robust(sender=AttendanceRecord, record=record):
        if isinstance(response, Exception):
            logger.error(
                "punch_recorded receiver failed",
                exc_info=response,
                extra={"receiver": getattr(receiver, "__name__", repr(receiver)), "record_id": record.id},
            )

    return record
