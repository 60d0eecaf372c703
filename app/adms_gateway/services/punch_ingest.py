from __future__ import annotations

import logging
from collections import Counter
from contextlib import nullcontext
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from django.conf import settings
from django.db import transaction

from adms_gateway.services.adms_parser import EnrollmentAnnouncement, ScanEvent, Skip, parse_payload
from adms_gateway.services.enrollment import activate_enrollment
from adms_gateway.services.identity import ResolutionStrategy, default_strategies, resolve_person
from adms_gateway.services.punch_classifier import classify_punch
from adms_gateway.services.recorder import record_punch
from adms_gateway.services.store import AttendanceStore, DeviceConfig
from devices.models import Device
from events.models import AttendanceRecord
from events.timezones import localize
from people.models import Person

logger = logging.getLogger(__name__)

OUTCOME_RECORDED = "recorded"
OUTCOME_SKIPPED = "skipped"
OUTCOME_UNKNOWN_PERSON = "unknown_person"


@dataclass
class PunchOutcome:
    event: ScanEvent
    status: str
    person: Person | None = None
    record: AttendanceRecord | None = None
    reason: str = ""


@dataclass
class IngestReport:
    lines: int = 0
    announcements: int = 0
    unparsed: int = 0
    unknown_people: int = 0
    recorded: list[AttendanceRecord] = field(default_factory=list)
    skipped: Counter = field(default_factory=Counter)

    def add(self, outcome: PunchOutcome) -> None:
        if outcome.status == OUTCOME_RECORDED:
            self.recorded.append(outcome.record)
        elif outcome.status == OUTCOME_UNKNOWN_PERSON:
            self.unknown_people += 1
        else:
            self.skipped[outcome.reason] += 1


class PunchIngestor:
    """Runs scan events through resolve, activate, classify and record."""

    def __init__(
        self,
        store: AttendanceStore | None = None,
        strategies: Sequence[ResolutionStrategy] | None = None,
        serialize_per_person: bool | None = None,
    ):
        self.store = store or AttendanceStore()
        self.strategies = list(strategies) if strategies is not None else default_strategies(self.store)
        if serialize_per_person is None:
            serialize_per_person = getattr(settings, "ADMS_SERIALIZE_PER_PERSON", False)
        self.serialize_per_person = serialize_per_person

    def device_context(self, device_serial: str) -> tuple[Device | None, DeviceConfig]:
        device = self.store.get_device(device_serial)
        config = self.store.get_device_config(device_serial) if device is not None else None
        return device, config or DeviceConfig.defaults()

    def ingest_payload(
        self,
        body: str,
        device_serial: str = "",
        source: str = AttendanceRecord.SOURCE_ADMS,
    ) -> IngestReport:
        return self.ingest_results(parse_payload(body, device_serial), device_serial, source)

    def ingest_results(
        self,
        results: Iterable[ScanEvent | EnrollmentAnnouncement | Skip],
        device_serial: str = "",
        source: str = AttendanceRecord.SOURCE_ADMS,
    ) -> IngestReport:
        report = IngestReport()
        context = None

        # Line N may depend on the record written for line N-1.
        for result in results:
            report.lines += 1
            if isinstance(result, EnrollmentAnnouncement):
                report.announcements += 1
                logger.info(
                    "Device announced user template",
                    extra={"device_serial": device_serial, "pin": result.pin},
                )
                continue
            if isinstance(result, Skip):
                report.unparsed += 1
                continue

            if context is None:
                context = self.device_context(device_serial)
            device, config = context
            report.add(self.ingest_event(result, device=device, config=config, source=source))

        logger.info(
            "ADMS payload processed",
            extra={
                "device_serial": device_serial,
                "lines": report.lines,
                "recorded": len(report.recorded),
                "skipped": dict(report.skipped),
                "unknown_people": report.unknown_people,
                "announcements": report.announcements,
            },
        )
        return report

    def ingest_event(
        self,
        event: ScanEvent,
        device: Device | None = None,
        config: DeviceConfig | None = None,
        source: str = AttendanceRecord.SOURCE_ADMS,
    ) -> PunchOutcome:
        if config is None:
            device, config = self.device_context(event.device_serial)

        resolution = resolve_person(event.template_id, self.strategies)
        if resolution is None:
            logger.warning(
                "No person matches device identifier",
                extra={"template_id": event.template_id, "device_serial": event.device_serial},
            )
            return PunchOutcome(event=event, status=OUTCOME_UNKNOWN_PERSON)

        guard = transaction.atomic() if self.serialize_per_person else nullcontext()
        with guard:
            person = resolution.person
            if self.serialize_per_person:
                person = self.store.lock_person(person)
            return self._classify_and_record(event, person, device, config, source)

    def _classify_and_record(
        self,
        event: ScanEvent,
        person: Person,
        device: Device | None,
        config: DeviceConfig,
        source: str,
    ) -> PunchOutcome:
        activate_enrollment(self.store, person, event.device_serial)

        punched_at = localize(event.scanned_at)
        day = event.scanned_at.date()
        todays_records = self.store.get_person_attendance_for_day(person, day)

        classification = classify_punch(punched_at, todays_records, config)
        if classification.skipped:
            reason = classification.skip_reason.value
            logger.info(
                "Punch skipped",
                extra={
                    "person": person.external_id,
                    "reason": reason,
                    "elapsed_seconds": classification.elapsed_seconds,
                    "device_serial": event.device_serial,
                },
            )
            return PunchOutcome(event=event, status=OUTCOME_SKIPPED, person=person, reason=reason)

        record = record_punch(
            self.store,
            person=person,
            event=event,
            punch_type=classification.punch_type,
            punched_at=punched_at,
            day=day,
            device=device,
            todays_records=todays_records,
            source=source,
        )
        logger.info(
            "Punch recorded",
            extra={
                "person": person.external_id,
                "punch_type": record.punch_type,
                "record_id": record.id,
                "device_serial": event.device_serial,
            },
        )
        return PunchOutcome(event=event, status=OUTCOME_RECORDED, person=person, record=record)
