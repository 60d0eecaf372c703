from django.contrib.auth import get_user_model
from rest_framework import status
from rest_framework.test import APITestCase

from devices.models import Device


User = get_user_model()


class DeviceApiTests(APITestCase):
    def setUp(self):
        self.user = User.objects.create_user(username='alice', password='pwd12345')

    def test_requires_authentication(self):
        response = self.client.get('/api/devices/')

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_register_device_with_defaults(self):
        self.client.force_authenticate(self.user)
        payload = {
            'serial_number': 'CUB7250700545',
            'name': 'Main gate',
            'location': 'Main Entrance',
        }

        response = self.client.post('/api/devices/', payload, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        device = Device.objects.get(serial_number='CUB7250700545')
        self.assertEqual(device.protocol, 'ADMS')
        self.assertEqual(device.attendance_mode, Device.MODE_IN_OUT)
        self.assertEqual(device.duplicate_window_seconds, 300)
        self.assertEqual(device.min_out_gap_seconds, 14400)
        self.assertFalse(device.is_online)

    def test_serial_number_must_be_alphanumeric(self):
        self.client.force_authenticate(self.user)

        response = self.client.post('/api/devices/', {'serial_number': 'CUB-72507'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('serial_number', response.data)

    def test_serial_number_must_be_unique(self):
        Device.objects.create(serial_number='CUB7250700545')
        self.client.force_authenticate(self.user)

        response = self.client.post('/api/devices/', {'serial_number': 'CUB7250700545'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['serial_number'][0], 'Device already registered.')

    def test_duplicate_window_cannot_exceed_out_gap(self):
        self.client.force_authenticate(self.user)
        payload = {
            'serial_number': 'CUB7250700545',
            'duplicate_window_seconds': 7200,
            'min_out_gap_seconds': 3600,
        }

        response = self.client.post('/api/devices/', payload, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('duplicate_window_seconds', response.data)

    def test_windows_must_be_positive(self):
        self.client.force_authenticate(self.user)

        response = self.client.post(
            '/api/devices/',
            {'serial_number': 'CUB7250700545', 'duplicate_window_seconds': 0},
            format='json',
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_attendance_mode(self):
        device = Device.objects.create(serial_number='CUB7250700545')
        self.client.force_authenticate(self.user)

        response = self.client.patch(
            f'/api/devices/{device.id}/',
            {'attendance_mode': Device.MODE_CHECK_OUT_ONLY},
            format='json',
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        device.refresh_from_db()
        self.assertEqual(device.attendance_mode, Device.MODE_CHECK_OUT_ONLY)

    def test_online_only_filter(self):
        Device.objects.create(serial_number='ONLINE001', is_online=True)
        Device.objects.create(serial_number='OFFLINE01')
        self.client.force_authenticate(self.user)

        response = self.client.get('/api/devices/?online_only=true')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['serial_number'] for row in response.data], ['ONLINE001'])
