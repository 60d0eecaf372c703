from datetime import datetime
from io import StringIO
from types import SimpleNamespace
from unittest.mock import patch
from zoneinfo import ZoneInfo

from django.core.management import call_command
from django.core.management.base import CommandError
from django.db import DatabaseError
from django.test import SimpleTestCase, TestCase, override_settings
from rest_framework import status
from rest_framework.test import APITestCase

from adms_gateway.services.adms_parser import EnrollmentAnnouncement, ScanEvent, Skip, parse_line, parse_payload
from adms_gateway.services.enrollment import activate_enrollment
from adms_gateway.services.identity import ResolutionStrategy, default_strategies, resolve_person
from adms_gateway.services.punch_classifier import (
    IN,
    OUT,
    DayState,
    SkipReason,
    classify_punch,
    transition,
)
from adms_gateway.services.punch_ingest import OUTCOME_RECORDED, OUTCOME_UNKNOWN_PERSON, PunchIngestor
from adms_gateway.services.store import AttendanceStore, DeviceConfig
from devices.models import Device
from events.models import AttendanceRecord, SummaryJob
from people.models import EnrollmentTask, Person

IST = ZoneInfo("Asia/Kolkata")
DEFAULTS = DeviceConfig(min_out_gap_seconds=14400, duplicate_window_seconds=300)


def at(clock: str, day: str = "2025-01-10") -> datetime:
    return datetime.strptime(f"{day} {clock}", "%Y-%m-%d %H:%M:%S").replace(tzinfo=IST)


def punch(punch_type: str, clock: str, stored: str | None = None) -> SimpleNamespace:
    return SimpleNamespace(punch_type=punch_type, punched_at=at(clock), created_at=at(stored or clock))


class AdmsParserTests(SimpleTestCase):
    def test_punch_line_with_tabs(self):
        result = parse_line("PUNCH\t1093\t2025-01-10 09:00:00\t0\t1\t0", "CUB7250700545")

        self.assertIsInstance(result, ScanEvent)
        self.assertEqual(result.template_id, "1093")
        self.assertEqual(result.scanned_at, datetime(2025, 1, 10, 9, 0, 0))
        self.assertEqual(result.device_serial, "CUB7250700545")

    def test_attlog_line_with_tabs(self):
        result = parse_line("0009\t2025-12-21 23:34:16\t0\t1\t0\t0\t0")

        self.assertIsInstance(result, ScanEvent)
        self.assertEqual(result.template_id, "0009")
        self.assertEqual(result.scanned_at, datetime(2025, 12, 21, 23, 34, 16))

    def test_space_separated_line_joins_date_and_time(self):
        result = parse_line("1234 2025-12-19 23:54:33 0 1")

        self.assertIsInstance(result, ScanEvent)
        self.assertEqual(result.template_id, "1234")
        self.assertEqual(result.scanned_at, datetime(2025, 12, 19, 23, 54, 33))

    def test_user_line_is_an_enrollment_announcement(self):
        result = parse_line("USER PIN=1093\tName=Roushan\tPri=0\tPasswd=\tCard=\tGrp=1")

        self.assertIsInstance(result, EnrollmentAnnouncement)
        self.assertEqual(result.pin, "1093")

    def test_user_line_without_pin_is_skipped(self):
        self.assertIsInstance(parse_line("USER Name=Nobody"), Skip)

    def test_oplog_line_is_skipped(self):
        result = parse_line("OPLOG 4\t0\t2025-01-10 09:00:00\t0\t0\t0\t0")

        self.assertIsInstance(result, Skip)
        self.assertEqual(result.reason, "operation_log")

    def test_line_without_separator_is_skipped(self):
        result = parse_line("garbage")

        self.assertIsInstance(result, Skip)
        self.assertEqual(result.reason, "no_separator")

    def test_line_with_too_few_fields_is_skipped(self):
        result = parse_line("1093 2025-01-10")

        self.assertIsInstance(result, Skip)
        self.assertEqual(result.reason, "not_enough_fields")

    def test_loose_timestamp_is_rejected(self):
        self.assertIsInstance(parse_line("1093\t2025-1-10 9:00:00\t0"), Skip)
        self.assertIsInstance(parse_line("1093\t2025-02-30 09:00:00\t0"), Skip)
        self.assertIsInstance(parse_line("1093\t10/01/2025 09:00\t0"), Skip)

    def test_payload_keeps_line_order_and_drops_blank_lines(self):
        body = (
            "PUNCH\t1\t2025-01-10 09:00:00\t0\r\n"
            "\r\n"
            "OPLOG 4\t0\r\n"
            "2\t2025-01-10 09:05:00\t0\t1\r\n"
        )

        results = list(parse_payload(body, "SN1"))

        self.assertEqual(len(results), 3)
        self.assertEqual(results[0].template_id, "1")
        self.assertIsInstance(results[1], Skip)
        self.assertEqual(results[2].template_id, "2")
        self.assertEqual(results[2].raw_line, "2\t2025-01-10 09:05:00\t0\t1")

    def test_payload_is_lazy(self):
        results = parse_payload("PUNCH\t1\t2025-01-10 09:00:00\nPUNCH\t2\tbad")

        first = next(results)
        self.assertEqual(first.template_id, "1")
        self.assertIsInstance(next(results), Skip)


class PunchClassifierTests(SimpleTestCase):
    def test_first_punch_of_the_day_is_in(self):
        outcome = classify_punch(at("09:00:00"), [], DEFAULTS)

        self.assertEqual(outcome.punch_type, IN)
        self.assertFalse(outcome.skipped)

    def test_first_punch_is_in_even_for_check_out_only_devices(self):
        config = DeviceConfig(attendance_mode=Device.MODE_CHECK_OUT_ONLY)

        self.assertEqual(classify_punch(at("18:00:00"), [], config).punch_type, IN)

    def test_rescan_inside_duplicate_window_is_skipped(self):
        outcome = classify_punch(at("09:02:00"), [punch(IN, "09:00:00")], DEFAULTS)

        self.assertEqual(outcome.skip_reason, SkipReason.DUPLICATE)
        self.assertEqual(outcome.elapsed_seconds, 120)

    def test_duplicate_window_applies_after_out_as_well(self):
        records = [punch(IN, "09:00:00"), punch(OUT, "14:00:00")]

        outcome = classify_punch(at("14:01:00"), records, DEFAULTS)

        self.assertEqual(outcome.skip_reason, SkipReason.DUPLICATE)

    def test_scan_before_minimum_gap_is_skipped(self):
        outcome = classify_punch(at("11:00:00"), [punch(IN, "09:00:00")], DEFAULTS)

        self.assertEqual(outcome.skip_reason, SkipReason.GAP_TOO_SHORT)
        self.assertEqual(outcome.elapsed_seconds, 7200)

    def test_scan_after_minimum_gap_is_out(self):
        outcome = classify_punch(at("14:00:00"), [punch(IN, "09:00:00")], DEFAULTS)

        self.assertEqual(outcome.punch_type, OUT)
        self.assertEqual(outcome.elapsed_seconds, 18000)

    def test_gap_boundary_is_inclusive(self):
        self.assertEqual(classify_punch(at("13:00:00"), [punch(IN, "09:00:00")], DEFAULTS).punch_type, OUT)
        self.assertEqual(
            classify_punch(at("09:05:00"), [punch(IN, "09:00:00")], DEFAULTS).skip_reason,
            SkipReason.GAP_TOO_SHORT,
        )

    def test_scan_after_out_is_skipped(self):
        records = [punch(IN, "09:00:00"), punch(OUT, "14:00:00")]

        outcome = classify_punch(at("16:00:00"), records, DEFAULTS)

        self.assertEqual(outcome.skip_reason, SkipReason.ALREADY_OUT)

    def test_last_punch_is_found_regardless_of_input_order(self):
        records = [punch(OUT, "14:00:00"), punch(IN, "09:00:00")]

        self.assertEqual(classify_punch(at("16:00:00"), records, DEFAULTS).skip_reason, SkipReason.ALREADY_OUT)

    def test_clock_going_backwards_counts_as_duplicate(self):
        outcome = classify_punch(at("08:00:00"), [punch(IN, "09:00:00")], DEFAULTS)

        self.assertEqual(outcome.skip_reason, SkipReason.DUPLICATE)
        self.assertLess(outcome.elapsed_seconds, 0)

    def test_zero_elapsed_counts_as_duplicate(self):
        outcome = classify_punch(at("09:00:00"), [punch(IN, "09:00:00")], DEFAULTS)

        self.assertEqual(outcome.skip_reason, SkipReason.DUPLICATE)

    def test_elapsed_runs_from_when_the_last_record_was_stored(self):
        # Punched at 09:00 on the device but only stored at 13:58.
        records = [punch(IN, "09:00:00", stored="13:58:00")]

        outcome = classify_punch(at("14:00:00"), records, DEFAULTS)

        self.assertEqual(outcome.skip_reason, SkipReason.DUPLICATE)
        self.assertEqual(outcome.elapsed_seconds, 120)

    def test_last_punch_is_the_most_recently_stored(self):
        # The OUT carries an earlier device time than the IN but was stored later.
        records = [punch(IN, "13:00:00", stored="09:00:00"), punch(OUT, "12:00:00", stored="14:00:00")]

        self.assertEqual(classify_punch(at("16:00:00"), records, DEFAULTS).skip_reason, SkipReason.ALREADY_OUT)

    def test_device_windows_are_honoured(self):
        config = DeviceConfig(min_out_gap_seconds=3600, duplicate_window_seconds=60)

        self.assertEqual(classify_punch(at("09:02:00"), [punch(IN, "09:00:00")], config).skip_reason, SkipReason.GAP_TOO_SHORT)
        self.assertEqual(classify_punch(at("10:00:00"), [punch(IN, "09:00:00")], config).punch_type, OUT)

    def test_check_in_only_mode_records_every_later_punch_as_in(self):
        config = DeviceConfig(attendance_mode=Device.MODE_CHECK_IN_ONLY)
        records = [punch(IN, "09:00:00"), punch(OUT, "14:00:00")]

        self.assertEqual(classify_punch(at("09:10:00"), records[:1], config).punch_type, IN)
        self.assertEqual(classify_punch(at("16:00:00"), records, config).punch_type, IN)
        self.assertEqual(classify_punch(at("14:01:00"), records, config).skip_reason, SkipReason.DUPLICATE)

    def test_check_out_only_mode_records_later_punches_as_out(self):
        config = DeviceConfig(attendance_mode=Device.MODE_CHECK_OUT_ONLY)

        self.assertEqual(classify_punch(at("09:10:00"), [punch(IN, "09:00:00")], config).punch_type, OUT)

    def test_transition_only_moves_forward(self):
        self.assertEqual(transition(DayState.EMPTY, None, DEFAULTS)[0], DayState.OPEN)
        self.assertEqual(transition(DayState.OPEN, 14400, DEFAULTS)[0], DayState.CLOSED)
        self.assertEqual(transition(DayState.OPEN, 600, DEFAULTS)[0], DayState.OPEN)
        self.assertEqual(transition(DayState.CLOSED, 99999, DEFAULTS)[0], DayState.CLOSED)

    def test_stored_zero_windows_are_kept(self):
        device = Device(serial_number="GATE0001", min_out_gap_seconds=0, duplicate_window_seconds=0)

        config = DeviceConfig.from_device(device)

        self.assertEqual((config.min_out_gap_seconds, config.duplicate_window_seconds), (0, 0))
        self.assertEqual(classify_punch(at("09:00:01"), [punch(IN, "09:00:00")], config).punch_type, OUT)

    @override_settings(ADMS_DEFAULT_DUPLICATE_WINDOW_SECONDS=30, ADMS_DEFAULT_MIN_OUT_GAP_SECONDS=600)
    def test_missing_config_uses_settings_defaults(self):
        outcome = classify_punch(at("09:11:00"), [punch(IN, "09:00:00")])

        self.assertEqual(outcome.punch_type, OUT)


class IdentityResolverTests(TestCase):
    def setUp(self):
        self.store = AttendanceStore()
        self.strategies = default_strategies(self.store)

    def test_device_pin_takes_precedence_over_student_id(self):
        by_pin = Person.objects.create(external_id="pin@campus.edu", device_pin="1093", student_id="5000")
        Person.objects.create(external_id="student@campus.edu", device_pin="7777", student_id="1093")

        resolution = resolve_person("1093", self.strategies)

        self.assertEqual(resolution.person, by_pin)
        self.assertEqual(resolution.matched_by, "device_pin")

    def test_falls_back_through_identifier_fields(self):
        student = Person.objects.create(external_id="s@campus.edu", student_id="2001")
        employee = Person.objects.create(external_id="e@campus.edu", employee_id="3001")
        legacy = Person.objects.create(external_id="b@campus.edu", biometric_id="4001")

        self.assertEqual(resolve_person("2001", self.strategies).matched_by, "student_id")
        self.assertEqual(resolve_person("3001", self.strategies).person, employee)
        self.assertEqual(resolve_person("4001", self.strategies).person, legacy)
        self.assertEqual(resolve_person("2001", self.strategies).person, student)

    def test_unknown_or_blank_identifier_resolves_to_nothing(self):
        Person.objects.create(external_id="blank@campus.edu")

        self.assertIsNone(resolve_person("9999", self.strategies))
        self.assertIsNone(resolve_person("", self.strategies))

    def test_strategy_list_is_tried_in_order(self):
        calls = []

        def lookup(name, result=None):
            def _lookup(value):
                calls.append(name)
                return result

            return _lookup

        person = Person(external_id="x@campus.edu")

        strategies = [
            ResolutionStrategy("first", lookup("first")),
            ResolutionStrategy("second", lookup("second", person)),
            ResolutionStrategy("third", lookup("third", person)),
        ]

        self.assertEqual(resolve_person("1", strategies).matched_by, "second")
        self.assertEqual(calls, ["first", "second"])


class EnrollmentActivatorTests(TestCase):
    def setUp(self):
        self.store = AttendanceStore()
        self.person = Person.objects.create(external_id="new@campus.edu", device_pin="1093")
        self.task = EnrollmentTask.objects.create(person=self.person)

    def test_first_scan_activates_and_completes_task(self):
        activated = activate_enrollment(self.store, self.person, "CUB7250700545")

        self.person.refresh_from_db()
        self.task.refresh_from_db()
        self.assertTrue(activated)
        self.assertEqual(self.person.enrollment_status, Person.ENROLLMENT_ACTIVE)
        self.assertIsNotNone(self.person.enrolled_at)
        self.assertEqual(self.person.devices_seen, ["CUB7250700545"])
        self.assertEqual(self.task.status, EnrollmentTask.STATUS_COMPLETED)
        self.assertIsNotNone(self.task.completed_at)

    def test_second_activation_is_a_no_op(self):
        activate_enrollment(self.store, self.person, "CUB7250700545")
        self.person.refresh_from_db()
        enrolled_at = self.person.enrolled_at

        activated = activate_enrollment(self.store, self.person, "CUB7250700545")

        self.person.refresh_from_db()
        self.assertFalse(activated)
        self.assertEqual(self.person.devices_seen, ["CUB7250700545"])
        self.assertEqual(self.person.enrolled_at, enrolled_at)

    def test_unknown_device_serial_is_not_recorded(self):
        activate_enrollment(self.store, self.person, "")

        self.person.refresh_from_db()
        self.assertEqual(self.person.enrollment_status, Person.ENROLLMENT_ACTIVE)
        self.assertEqual(self.person.devices_seen, [])


class AdmsPunchEndpointTests(APITestCase):
    serial = "CUB7250700545"

    def setUp(self):
        self.person = Person.objects.create(
            external_id="roushan@campus.edu",
            name="Roushan",
            device_pin="1093",
        )
        EnrollmentTask.objects.create(person=self.person)

    def post_lines(self, *lines, path="/iclock/cdata", serial=None, arrived="09:00:00"):
        extra = {"HTTP_SN": serial if serial is not None else self.serial}
        with patch.object(AttendanceStore, "now", return_value=at(arrived)):
            return self.client.post(path, data="\n".join(lines), content_type="text/plain", **extra)

    def scan(self, clock, arrived=None):
        return self.post_lines(f"PUNCH\t1093\t2025-01-10 {clock}\t0\t1\t0", arrived=arrived or clock)

    def records(self):
        return list(AttendanceRecord.objects.filter(person=self.person).order_by("punched_at"))

    def test_full_day_of_scans(self):
        for clock in ("09:00:00", "09:02:00", "11:00:00", "14:00:00", "16:00:00"):
            response = self.scan(clock)
            self.assertEqual(response.status_code, status.HTTP_200_OK)
            self.assertEqual(response.content, b"OK")
            self.assertEqual(response["Content-Type"], "text/plain")

        records = self.records()
        self.assertEqual([record.punch_type for record in records], ["IN", "OUT"])
        self.assertEqual(records[0].punched_at, at("09:00:00"))
        self.assertEqual(records[1].punched_at, at("14:00:00"))
        self.assertEqual(records[1].duration_minutes, 300)
        self.assertEqual(records[1].status, AttendanceRecord.STATUS_EARLY_OUT)
        self.assertEqual(str(records[0].date), "2025-01-10")
        self.assertEqual(records[0].raw_line, "PUNCH\t1093\t2025-01-10 09:00:00\t0\t1\t0")

    def test_first_scan_activates_enrollment_and_is_recorded(self):
        self.scan("09:00:00")

        self.person.refresh_from_db()
        self.assertEqual(self.person.enrollment_status, Person.ENROLLMENT_ACTIVE)
        self.assertEqual(self.person.devices_seen, [self.serial])
        self.assertEqual(EnrollmentTask.objects.get(person=self.person).status, EnrollmentTask.STATUS_COMPLETED)
        self.assertEqual(len(self.records()), 1)

    def test_lines_in_one_payload_see_each_other(self):
        response = self.post_lines(
            "PUNCH\t1093\t2025-01-10 09:00:00\t0\t1\t0",
            "PUNCH\t1093\t2025-01-10 09:01:00\t0\t1\t0",
            "PUNCH\t1093\t2025-01-10 18:30:00\t0\t1\t0",
            arrived="09:01:00",
        )

        self.assertEqual(response.content, b"OK")
        records = self.records()
        self.assertEqual([record.punch_type for record in records], ["IN", "OUT"])
        self.assertEqual(records[0].created_at, at("09:01:00"))

    def test_late_delivered_punch_counts_from_its_arrival(self):
        self.scan("09:00:00", arrived="13:58:00")
        self.scan("14:00:00")

        records = self.records()
        self.assertEqual([record.punch_type for record in records], ["IN"])
        self.assertEqual(records[0].punched_at, at("09:00:00"))

    def test_retried_payload_does_not_duplicate_records(self):
        self.scan("09:00:00")
        self.scan("09:00:00")

        self.assertEqual(len(self.records()), 1)

    def test_device_configuration_is_used(self):
        Device.objects.create(serial_number=self.serial, min_out_gap_seconds=3600, duplicate_window_seconds=60)

        self.scan("09:00:00")
        self.scan("10:00:00")

        records = self.records()
        self.assertEqual([record.punch_type for record in records], ["IN", "OUT"])
        self.assertEqual(records[0].device.serial_number, self.serial)

    def test_late_arrival_is_flagged(self):
        self.scan("10:15:00")

        self.assertEqual(self.records()[0].status, AttendanceRecord.STATUS_LATE)

    def test_unknown_identifier_is_dropped_but_acknowledged(self):
        response = self.post_lines("PUNCH\t4242\t2025-01-10 09:00:00\t0\t1\t0")

        self.assertEqual(response.content, b"OK")
        self.assertEqual(AttendanceRecord.objects.count(), 0)

    def test_only_user_lines_are_acknowledged(self):
        response = self.post_lines("USER PIN=1093\tName=Roushan\tPri=0")

        self.assertEqual(response.content, b"OK")
        self.assertEqual(AttendanceRecord.objects.count(), 0)
        self.person.refresh_from_db()
        self.assertEqual(self.person.enrollment_status, Person.ENROLLMENT_PENDING)

    def test_unusable_payload_is_acknowledged(self):
        response = self.post_lines("OPLOG 4\t0", "garbage", "1093\tnot-a-date\t0")

        self.assertEqual(response.content, b"OK")

    def test_missing_serial_uses_defaults(self):
        response = self.post_lines("1093\t2025-01-10 09:00:00\t0\t1", serial="")

        self.assertEqual(response.content, b"OK")
        record = self.records()[0]
        self.assertIsNone(record.device)
        self.assertEqual(record.device_serial, "")

    def test_serial_from_query_string(self):
        self.client.post(
            f"/iclock/cdata.aspx?SN={self.serial}&table=ATTLOG",
            data="1093 2025-01-10 09:00:00 0 1",
            content_type="text/plain",
        )

        self.assertEqual(self.records()[0].device_serial, self.serial)

    def test_biometric_simple_alias(self):
        response = self.post_lines("PUNCH\t1093\t2025-01-10 09:00:00", path="/api/biometric-simple/punch")

        self.assertEqual(response.content, b"OK")
        self.assertEqual(len(self.records()), 1)

    @patch("adms_gateway.services.store.AttendanceStore.create_attendance_record", side_effect=DatabaseError("down"))
    def test_storage_failure_answers_error(self, _mock_create):
        response = self.scan("09:00:00")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.content, b"ERROR")

    def test_recorded_punch_queues_one_summary_job(self):
        self.scan("09:00:00")
        self.scan("14:00:00")

        jobs = SummaryJob.objects.filter(person=self.person)
        self.assertEqual(jobs.count(), 1)
        self.assertEqual(jobs.get().status, SummaryJob.STATUS_PENDING)

    @patch("events.receivers.enqueue_summary", side_effect=RuntimeError("queue down"))
    def test_summary_failure_does_not_affect_ack(self, _mock_enqueue):
        response = self.scan("09:00:00")

        self.assertEqual(response.content, b"OK")
        self.assertEqual(len(self.records()), 1)
        self.assertEqual(SummaryJob.objects.count(), 0)

    @override_settings(ADMS_SERIALIZE_PER_PERSON=True)
    def test_per_person_serialization_keeps_the_ladder(self):
        self.scan("09:00:00")
        self.scan("09:01:00")
        self.scan("13:30:00")

        self.assertEqual([record.punch_type for record in self.records()], ["IN", "OUT"])

    def test_sync_and_command_poll_answer_ok(self):
        sync = self.client.get(f"/iclock/cdata?SN={self.serial}&options=all&table=ATTLOG")
        poll = self.client.get(f"/iclock/getrequest.aspx?SN={self.serial}")

        self.assertEqual(sync.content, b"OK")
        self.assertEqual(poll.content, b"OK")
        self.assertEqual(poll["Content-Type"], "text/plain")

    def test_command_poll_marks_device_online(self):
        device = Device.objects.create(serial_number=self.serial)

        self.client.get(f"/iclock/getrequest?SN={self.serial}")

        device.refresh_from_db()
        self.assertTrue(device.is_online)
        self.assertIsNotNone(device.last_heartbeat_at)


class PunchIngestorTests(TestCase):
    def test_reports_outcomes_per_line(self):
        Person.objects.create(external_id="a@campus.edu", device_pin="1")

        report = PunchIngestor(store=AttendanceStore(clock=lambda: at("09:00:00"))).ingest_payload(
            "USER PIN=1\tName=A\n"
            "PUNCH\t1\t2025-01-10 09:00:00\n"
            "PUNCH\t1\t2025-01-10 09:01:00\n"
            "PUNCH\t2\t2025-01-10 09:00:00\n"
            "OPLOG 1\t2\n",
            "SN1",
        )

        self.assertEqual(report.lines, 5)
        self.assertEqual(report.announcements, 1)
        self.assertEqual(report.unparsed, 1)
        self.assertEqual(report.unknown_people, 1)
        self.assertEqual(len(report.recorded), 1)
        self.assertEqual(report.skipped["duplicate"], 1)

    def test_ingest_event_with_injected_store(self):
        person = Person(external_id="fake@campus.edu", enrollment_status=Person.ENROLLMENT_ACTIVE)

        class FakeStore:
            def __init__(self):
                self.created = []

            def find_person_by_field(self, field_name, value):
                return person if field_name == "employee_id" else None

            def get_device(self, device_serial):
                return None

            def get_device_config(self, device_serial):
                return None

            def get_person_attendance_for_day(self, person, day):
                return [punch(IN, "09:00:00")]

            def create_attendance_record(self, **fields):
                self.created.append(fields)
                return SimpleNamespace(id=1, **fields)

        store = FakeStore()
        event = ScanEvent(
            device_serial="SN1",
            raw_line="7\t2025-01-10 13:00:00\t0",
            template_id="7",
            scanned_at=datetime(2025, 1, 10, 13, 0, 0),
        )

        with patch("adms_gateway.services.recorder.punch_recorded.send_robust", return_value=[]):
            outcome = PunchIngestor(store=store).ingest_event(event)

        self.assertEqual(outcome.status, OUTCOME_RECORDED)
        self.assertEqual(store.created[0]["punch_type"], OUT)
        self.assertEqual(store.created[0]["duration_minutes"], 240)

    def test_unknown_person_outcome(self):
        event = ScanEvent(device_serial="", raw_line="x", template_id="404", scanned_at=datetime(2025, 1, 10, 9, 0))

        self.assertEqual(PunchIngestor().ingest_event(event).status, OUTCOME_UNKNOWN_PERSON)


@override_settings(ADMS_WEBHOOK_SECRET="s3cret")
class AttendancePushTests(APITestCase):
    def setUp(self):
        self.person = Person.objects.create(external_id="push@campus.edu", employee_id="E77")
        Device.objects.create(serial_number="PUSH001")

    def test_rejects_wrong_secret(self):
        response = self.client.post(
            "/api/biometric/attendance/push",
            {"device_id": "PUSH001", "records": []},
            format="json",
            HTTP_X_WEBHOOK_SECRET="nope",
        )

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_records_go_through_the_same_ladder(self):
        payload = {
            "device_id": "PUSH001",
            "records": [
                {"template_id": "E77", "timestamp": "2025-01-10 09:00:00"},
                {"template_id": "E77", "timestamp": "2025-01-10 09:03:00"},
                {"template_id": "E77", "timestamp": "10/01/2025"},
                {"template_id": "E77", "timestamp": "2025-01-10 17:00:00"},
            ],
        }

        with patch.object(AttendanceStore, "now", return_value=at("09:00:00")):
            response = self.client.post(
                "/api/biometric/attendance/push",
                payload,
                format="json",
                HTTP_X_WEBHOOK_SECRET="s3cret",
            )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.json(), {"status": "ok", "received": 4, "recorded": 2, "skipped": 2})
        records = AttendanceRecord.objects.filter(person=self.person).order_by("punched_at")
        self.assertEqual([record.punch_type for record in records], ["IN", "OUT"])
        self.assertTrue(all(record.source == AttendanceRecord.SOURCE_PUSH for record in records))

    def test_secret_may_be_sent_in_body(self):
        response = self.client.post(
            "/api/biometric/attendance/push",
            {"device_id": "PUSH001", "secret": "s3cret", "records": []},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_rejects_malformed_records(self):
        response = self.client.post(
            "/api/biometric/attendance/push",
            {"device_id": "PUSH001", "records": "nope"},
            format="json",
            HTTP_X_WEBHOOK_SECRET="s3cret",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class DeviceHeartbeatTests(APITestCase):
    def setUp(self):
        self.device = Device.objects.create(serial_number="HB0001")

    def test_heartbeat_updates_status(self):
        response = self.client.post(
            "/api/biometric/devices/HB0001/heartbeat",
            {"battery_level": 87, "storage_used": 1200, "daily_records": 14},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.device.refresh_from_db()
        self.assertTrue(self.device.is_online)
        self.assertEqual(self.device.battery_level, 87)
        self.assertEqual(self.device.storage_used, 1200)
        self.assertEqual(self.device.daily_records, 14)

    def test_unknown_device_is_404(self):
        response = self.client.post("/api/biometric/devices/NOPE/heartbeat", {}, format="json")

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    @override_settings(ADMS_ALLOWED_IPS=["10.0.0.5"])
    def test_rejects_unlisted_ip(self):
        response = self.client.post("/api/biometric/devices/HB0001/heartbeat", {}, format="json")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class AdmsCommandTests(TestCase):
    def test_register_device_creates_then_updates(self):
        stdout = StringIO()
        call_command("adms_register_device", "--serial", "CUB7250700545", "--location", "Main Entrance", stdout=stdout)
        call_command("adms_register_device", "--serial", "CUB7250700545", "--duplicate-window", "120", stdout=stdout)

        device = Device.objects.get(serial_number="CUB7250700545")
        self.assertEqual(device.duplicate_window_seconds, 120)
        self.assertEqual(device.protocol, "ADMS")
        self.assertIn("Registered device", stdout.getvalue())
        self.assertIn("Updated device", stdout.getvalue())

    def test_register_device_accepts_mode_aliases(self):
        call_command("adms_register_device", "--serial", "GATE0001", "--mode", "IN_ONLY", stdout=StringIO())
        call_command("adms_register_device", "--serial", "GATE0002", "--mode", "check-out-only", stdout=StringIO())

        self.assertEqual(Device.objects.get(serial_number="GATE0001").attendance_mode, Device.MODE_CHECK_IN_ONLY)
        self.assertEqual(Device.objects.get(serial_number="GATE0002").attendance_mode, Device.MODE_CHECK_OUT_ONLY)

    def test_configure_mode_normalises_spelling(self):
        Device.objects.create(serial_number="CUB7250700545")
        stdout = StringIO()

        call_command("adms_configure_mode", "CUB7250700545", "check-in-only", stdout=stdout)

        self.assertEqual(Device.objects.get().attendance_mode, Device.MODE_CHECK_IN_ONLY)
        self.assertIn("CHECK_IN_ONLY", stdout.getvalue())

    def test_configure_mode_rejects_unknown_mode(self):
        Device.objects.create(serial_number="CUB7250700545")

        with self.assertRaises(CommandError) as exc:
            call_command("adms_configure_mode", "CUB7250700545", "sideways")

        self.assertIn("Invalid mode", str(exc.exception))

    def test_configure_mode_rejects_unknown_device(self):
        with self.assertRaises(CommandError) as exc:
            call_command("adms_configure_mode", "MISSING", "IN_OUT")

        self.assertIn("Device not found", str(exc.exception))

    def test_assign_biometric_ids_backfills_missing_people(self):
        Person.objects.create(external_id="a@campus.edu")
        Person.objects.create(external_id="b@campus.edu", biometric_id="BIO-0900", device_pin="0900")
        stdout = StringIO()

        call_command("adms_assign_biometric_ids", stdout=stdout)

        person = Person.objects.get(external_id="a@campus.edu")
        self.assertEqual(person.biometric_id, "BIO-0001")
        self.assertEqual(person.device_pin, "0001")
        self.assertEqual(Person.objects.get(external_id="b@campus.edu").device_pin, "0900")
        self.assertIn("Assigned biometric IDs to 1 people", stdout.getvalue())

    def test_process_summaries_once(self):
        person = Person.objects.create(external_id="sum@campus.edu", device_pin="5")
        store = AttendanceStore(clock=lambda: at("09:00:00"))
        PunchIngestor(store=store).ingest_payload("5\t2025-01-10 09:00:00\t0\n5\t2025-01-10 17:30:00\t0\n", "SN1")
        stdout = StringIO()

        call_command("adms_process_summaries", "--once", stdout=stdout)

        self.assertIn("Processed 1 summary jobs (0 failed)", stdout.getvalue())
        summary = person.daily_summaries.get()
        self.assertEqual(str(summary.total_hours), "8.50")
        self.assertEqual(summary.record_count, 2)
