from datetime import date, datetime
from decimal import Decimal
from unittest.mock import MagicMock, patch
from zoneinfo import ZoneInfo

import requests
from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings
from rest_framework import status
from rest_framework.test import APITestCase

from events.client import SummaryWebhookClient
from events.models import AttendanceRecord, DailySummary, SummaryJob
from events.services.summaries import compute_daily_summary, enqueue_summary, process_pending_jobs
from events.timezones import local_date, localize
from people.models import Person


User = get_user_model()
IST = ZoneInfo('Asia/Kolkata')


def record(person, clock, punch_type, status_=AttendanceRecord.STATUS_PRESENT, day='2025-01-10'):
    punched_at = datetime.strptime(f'{day} {clock}', '%Y-%m-%d %H:%M').replace(tzinfo=IST)
    return AttendanceRecord.objects.create(
        person=person,
        date=date.fromisoformat(day),
        punch_type=punch_type,
        punched_at=punched_at,
        status=status_,
    )


class AttendanceTimezoneTests(TestCase):
    def test_naive_device_time_is_read_as_attendance_zone(self):
        aware = localize(datetime(2025, 1, 10, 0, 30))

        self.assertEqual(aware.utcoffset().total_seconds(), 5.5 * 3600)
        self.assertEqual(local_date(aware), date(2025, 1, 10))

    @override_settings(ATTENDANCE_TIME_ZONE='UTC')
    def test_zone_is_configurable(self):
        self.assertEqual(localize(datetime(2025, 1, 10, 9, 0)).utcoffset().total_seconds(), 0)


class AttendanceRecordApiTests(APITestCase):
    def setUp(self):
        self.user = User.objects.create_user(username='alice', password='pwd12345')
        self.ana = Person.objects.create(external_id='ana@campus.edu', name='Ana', student_id='S1')
        self.ben = Person.objects.create(external_id='ben@campus.edu', name='Ben', role=Person.ROLE_STAFF)

    def test_requires_authentication(self):
        response = self.client.get('/api/attendance/records/')

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_filters_by_person_type_and_date_range(self):
        record(self.ana, '09:00', AttendanceRecord.TYPE_IN)
        record(self.ana, '17:00', AttendanceRecord.TYPE_OUT)
        record(self.ana, '09:10', AttendanceRecord.TYPE_IN, day='2025-01-12')
        record(self.ben, '08:55', AttendanceRecord.TYPE_IN)
        self.client.force_authenticate(self.user)

        by_person = self.client.get(f'/api/attendance/records/?person={self.ana.id}')
        by_type = self.client.get(f'/api/attendance/records/?person={self.ana.id}&punch_type=in')
        by_range = self.client.get('/api/attendance/records/?start_date=2025-01-11&end_date=2025-01-31')
        by_day = self.client.get('/api/attendance/records/?date=2025-01-10')

        self.assertEqual(len(by_person.data), 3)
        self.assertEqual(len(by_type.data), 2)
        self.assertEqual([row['date'] for row in by_range.data], ['2025-01-12'])
        self.assertEqual(len(by_day.data), 3)
        self.assertEqual(by_person.data[0]['person_external_id'], 'ana@campus.edu')

    def test_records_are_read_only(self):
        self.client.force_authenticate(self.user)

        response = self.client.post('/api/attendance/records/', {}, format='json')

        self.assertEqual(response.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)


class DailyReportTests(APITestCase):
    def setUp(self):
        self.user = User.objects.create_user(username='alice', password='pwd12345')
        self.ana = Person.objects.create(external_id='ana@campus.edu', name='Ana', student_id='S1')
        self.ben = Person.objects.create(external_id='ben@campus.edu', name='Ben', employee_id='E1')

    def test_daily_report_groups_by_person(self):
        record(self.ana, '09:00', AttendanceRecord.TYPE_IN)
        record(self.ana, '17:00', AttendanceRecord.TYPE_OUT)
        record(self.ben, '09:45', AttendanceRecord.TYPE_IN, AttendanceRecord.STATUS_LATE)
        self.client.force_authenticate(self.user)

        response = self.client.get('/api/attendance/reports/daily?date=2025-01-10')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['date'], '2025-01-10')
        self.assertEqual(response.data['total_people'], 2)
        self.assertEqual(response.data['present'], 2)
        self.assertEqual(response.data['late'], 1)
        rows = {row['external_id']: row for row in response.data['report']}
        self.assertEqual(rows['ana@campus.edu']['total_records'], 2)
        self.assertEqual(rows['ana@campus.edu']['student_id'], 'S1')
        self.assertIsNotNone(rows['ana@campus.edu']['last_out'])
        self.assertIsNone(rows['ben@campus.edu']['last_out'])

    def test_invalid_date_is_rejected(self):
        self.client.force_authenticate(self.user)

        response = self.client.get('/api/attendance/reports/daily?date=10-01-2025')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_empty_day(self):
        self.client.force_authenticate(self.user)

        response = self.client.get('/api/attendance/reports/daily?date=2024-12-25')

        self.assertEqual(response.data['total_people'], 0)
        self.assertEqual(response.data['report'], [])


class DailySummaryTests(TestCase):
    def setUp(self):
        self.person = Person.objects.create(external_id='ana@campus.edu')
        self.day = date(2025, 1, 10)

    def test_summary_spans_first_in_to_last_out(self):
        record(self.person, '09:00', AttendanceRecord.TYPE_IN)
        record(self.person, '17:20', AttendanceRecord.TYPE_OUT)

        summary = compute_daily_summary(self.person, self.day)

        self.assertEqual(summary.total_hours, Decimal('8.33'))
        self.assertEqual(summary.status, AttendanceRecord.STATUS_PRESENT)
        self.assertEqual(summary.record_count, 2)

    def test_late_arrival_dominates_status(self):
        record(self.person, '09:50', AttendanceRecord.TYPE_IN, AttendanceRecord.STATUS_LATE)
        record(self.person, '15:00', AttendanceRecord.TYPE_OUT, AttendanceRecord.STATUS_EARLY_OUT)

        self.assertEqual(compute_daily_summary(self.person, self.day).status, AttendanceRecord.STATUS_LATE)

    def test_open_day_has_no_hours(self):
        record(self.person, '09:00', AttendanceRecord.TYPE_IN)

        summary = compute_daily_summary(self.person, self.day)

        self.assertEqual(summary.total_hours, Decimal('0'))
        self.assertIsNone(summary.last_out)

    def test_recompute_updates_existing_summary(self):
        record(self.person, '09:00', AttendanceRecord.TYPE_IN)
        compute_daily_summary(self.person, self.day)
        record(self.person, '13:00', AttendanceRecord.TYPE_OUT)

        compute_daily_summary(self.person, self.day)

        summary = DailySummary.objects.get(person=self.person, date=self.day)
        self.assertEqual(summary.total_hours, Decimal('4.00'))

    def test_day_without_records_has_no_summary(self):
        self.assertIsNone(compute_daily_summary(self.person, self.day))

    def test_enqueue_reuses_pending_job(self):
        first = enqueue_summary(self.person, self.day)
        second = enqueue_summary(self.person, self.day)

        self.assertEqual(first.pk, second.pk)


class SummaryJobProcessingTests(TestCase):
    def setUp(self):
        self.person = Person.objects.create(external_id='ana@campus.edu')
        record(self.person, '09:00', AttendanceRecord.TYPE_IN)
        record(self.person, '17:00', AttendanceRecord.TYPE_OUT)
        self.job = SummaryJob.objects.create(person=self.person, date=date(2025, 1, 10))

    def test_job_forwards_summary_to_client(self):
        client = MagicMock()

        done, failed = process_pending_jobs(client=client)

        self.assertEqual((done, failed), (1, 0))
        payload = client.send_daily_summary.call_args.args[0]
        self.assertEqual(payload['person'], 'ana@campus.edu')
        self.assertEqual(payload['total_hours'], '8.00')
        self.job.refresh_from_db()
        self.assertEqual(self.job.status, SummaryJob.STATUS_DONE)
        self.assertEqual(self.job.attempts, 1)

    def test_failed_delivery_is_retried_until_max_attempts(self):
        client = MagicMock()
        client.send_daily_summary.side_effect = requests.ConnectionError('unreachable')

        with override_settings(ATTENDANCE_SUMMARY_MAX_ATTEMPTS=2):
            self.assertEqual(process_pending_jobs(client=client), (0, 1))
            self.assertEqual(process_pending_jobs(client=client), (0, 1))
            self.assertEqual(process_pending_jobs(client=client), (0, 0))

        self.job.refresh_from_db()
        self.assertEqual(self.job.status, SummaryJob.STATUS_FAILED)
        self.assertEqual(self.job.attempts, 2)
        self.assertIn('unreachable', self.job.last_error)
        self.assertTrue(DailySummary.objects.filter(person=self.person).exists())

    def test_punch_during_processing_queues_a_fresh_job(self):
        def compute_then_punch(person, day):
            summary = compute_daily_summary(person, day)
            late_out = record(person, '18:00', AttendanceRecord.TYPE_OUT)
            enqueue_summary(person, late_out.date)
            return summary

        with patch('events.services.summaries.compute_daily_summary', side_effect=compute_then_punch):
            self.assertEqual(process_pending_jobs(), (1, 0))

        self.job.refresh_from_db()
        self.assertEqual(self.job.status, SummaryJob.STATUS_DONE)
        self.assertEqual(SummaryJob.objects.filter(status=SummaryJob.STATUS_PENDING).count(), 1)

        self.assertEqual(process_pending_jobs(), (1, 0))

        summary = DailySummary.objects.get(person=self.person)
        self.assertEqual(summary.record_count, 3)
        self.assertEqual(summary.total_hours, Decimal('9.00'))

    def test_job_claimed_elsewhere_is_left_alone(self):
        SummaryJob.objects.filter(pk=self.job.pk).update(status=SummaryJob.STATUS_PROCESSING)

        self.assertEqual(process_pending_jobs(), (0, 0))
        self.assertFalse(DailySummary.objects.exists())

    def test_without_webhook_summaries_are_only_stored(self):
        self.assertEqual(process_pending_jobs(), (1, 0))
        self.assertEqual(DailySummary.objects.get(person=self.person).total_hours, Decimal('8.00'))


class SummaryWebhookClientTests(TestCase):
    @override_settings(ATTENDANCE_SUMMARY_WEBHOOK_URL='')
    def test_no_client_without_url(self):
        self.assertIsNone(SummaryWebhookClient.from_settings())

    @override_settings(ATTENDANCE_SUMMARY_WEBHOOK_URL='https://hooks.campus.test/attendance', ATTENDANCE_SUMMARY_WEBHOOK_TOKEN='tok')
    @patch('events.client.requests.post')
    def test_posts_wrapped_summary_with_bearer_token(self, mock_post):
        mock_post.return_value.content = b''

        SummaryWebhookClient.from_settings().send_daily_summary({'person': 'ana@campus.edu'})

        mock_post.assert_called_once()
        kwargs = mock_post.call_args.kwargs
        self.assertEqual(mock_post.call_args.args[0], 'https://hooks.campus.test/attendance')
        self.assertEqual(kwargs['json'], {'type': 'attendance.daily_summary', 'summary': {'person': 'ana@campus.edu'}})
        self.assertEqual(kwargs['headers']['Authorization'], 'Bearer tok')
        mock_post.return_value.raise_for_status.assert_called_once()
