from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APITestCase

from events.models import AttendanceRecord
from people.models import EnrollmentTask, Person
from people.services import assign_missing_ids, format_biometric_id


User = get_user_model()


class BiometricIdTests(TestCase):
    def test_format_pads_to_four_digits(self):
        self.assertEqual(format_biometric_id(7), ('BIO-0007', '0007'))
        self.assertEqual(format_biometric_id(12345), ('BIO-12345', '12345'))

    def test_ids_are_allocated_in_sequence(self):
        first = Person.objects.create(external_id='a@campus.edu')
        second = Person.objects.create(external_id='b@campus.edu')

        self.assertTrue(assign_missing_ids(first))
        self.assertTrue(assign_missing_ids(second))

        first.refresh_from_db()
        second.refresh_from_db()
        self.assertEqual((first.biometric_id, first.device_pin), ('BIO-0001', '0001'))
        self.assertEqual((second.biometric_id, second.device_pin), ('BIO-0002', '0002'))

    def test_existing_pin_is_kept(self):
        person = Person.objects.create(external_id='a@campus.edu', device_pin='1093')

        assign_missing_ids(person)

        person.refresh_from_db()
        self.assertEqual(person.device_pin, '1093')
        self.assertEqual(person.biometric_id, 'BIO-0001')

    def test_fully_assigned_person_is_untouched(self):
        person = Person.objects.create(external_id='a@campus.edu', device_pin='1093', biometric_id='BIO-1093')

        self.assertFalse(assign_missing_ids(person))


class PersonApiTests(APITestCase):
    def setUp(self):
        self.user = User.objects.create_user(username='alice', password='pwd12345')

    def test_requires_authentication(self):
        response = self.client.get('/api/people/')

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_create_assigns_biometric_id(self):
        self.client.force_authenticate(self.user)
        payload = {'external_id': 'roushan@campus.edu', 'name': 'Roushan', 'student_id': '2025CS001'}

        response = self.client.post('/api/people/', payload, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['biometric_id'], 'BIO-0001')
        self.assertEqual(response.data['device_pin'], '0001')
        self.assertEqual(response.data['enrollment_status'], Person.ENROLLMENT_PENDING)

    def test_device_pin_must_be_numeric(self):
        self.client.force_authenticate(self.user)

        response = self.client.post(
            '/api/people/',
            {'external_id': 'x@campus.edu', 'device_pin': '10A3'},
            format='json',
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('device_pin', response.data)

    def test_filter_by_role_and_enrollment_status(self):
        Person.objects.create(external_id='s@campus.edu', role=Person.ROLE_STUDENT)
        Person.objects.create(
            external_id='f@campus.edu',
            role=Person.ROLE_FACULTY,
            enrollment_status=Person.ENROLLMENT_ACTIVE,
        )
        self.client.force_authenticate(self.user)

        by_role = self.client.get('/api/people/?role=faculty')
        by_status = self.client.get('/api/people/?enrollment_status=pending')

        self.assertEqual([row['external_id'] for row in by_role.data], ['f@campus.edu'])
        self.assertEqual([row['external_id'] for row in by_status.data], ['s@campus.edu'])


class EnrollmentFlowTests(APITestCase):
    def setUp(self):
        self.user = User.objects.create_user(username='alice', password='pwd12345')
        self.person = Person.objects.create(
            external_id='roushan@campus.edu',
            enrollment_status=Person.ENROLLMENT_ACTIVE,
            devices_seen=['OLD0001'],
        )

    def test_enroll_resets_status_and_opens_task(self):
        self.client.force_authenticate(self.user)

        response = self.client.put(
            f'/api/people/{self.person.id}/enroll/',
            {'template_id': '1093', 'device_ids': ['CUB7250700545']},
            format='json',
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.person.refresh_from_db()
        self.assertEqual(self.person.device_pin, '1093')
        self.assertEqual(self.person.enrollment_status, Person.ENROLLMENT_PENDING)
        self.assertIsNone(self.person.enrolled_at)
        self.assertEqual(self.person.devices_seen, ['CUB7250700545'])
        self.assertEqual(self.person.enrollment_tasks.filter(status=EnrollmentTask.STATUS_PENDING).count(), 1)

    def test_enroll_twice_keeps_one_open_task(self):
        self.client.force_authenticate(self.user)
        url = f'/api/people/{self.person.id}/enroll/'

        self.client.put(url, {'template_id': '1093'}, format='json')
        self.client.put(url, {'template_id': '1094'}, format='json')

        self.assertEqual(self.person.enrollment_tasks.count(), 1)

    def test_enrollment_tasks_are_listed_newest_first(self):
        old = EnrollmentTask.objects.create(person=self.person, status=EnrollmentTask.STATUS_COMPLETED)
        self.client.force_authenticate(self.user)
        self.client.put(f'/api/people/{self.person.id}/enroll/', {'template_id': '1093'}, format='json')

        response = self.client.get(f'/api/people/{self.person.id}/enrollment-tasks/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['status'] for row in response.data], ['pending', 'completed'])
        self.assertEqual(response.data[1]['id'], old.id)

    def test_template_id_must_be_numeric(self):
        self.client.force_authenticate(self.user)

        response = self.client.put(f'/api/people/{self.person.id}/enroll/', {'template_id': 'abc'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_first_scan_after_enroll_completes_task(self):
        self.client.force_authenticate(self.user)
        self.client.put(
            f'/api/people/{self.person.id}/enroll/',
            {'template_id': '1093', 'device_ids': []},
            format='json',
        )

        response = self.client.post(
            '/iclock/cdata',
            data='PUNCH\t1093\t2025-01-10 09:00:00\t0\t1\t0',
            content_type='text/plain',
            HTTP_SN='CUB7250700545',
        )

        self.assertEqual(response.content, b'OK')
        self.person.refresh_from_db()
        self.assertEqual(self.person.enrollment_status, Person.ENROLLMENT_ACTIVE)
        self.assertEqual(self.person.devices_seen, ['CUB7250700545'])
        task = self.person.enrollment_tasks.get()
        self.assertEqual(task.status, EnrollmentTask.STATUS_COMPLETED)
        self.assertEqual(AttendanceRecord.objects.filter(person=self.person).count(), 1)
