from django.contrib.auth import get_user_model
from django.test import override_settings
from rest_framework import status
from rest_framework.test import APITestCase

from blood_requests.tests.utils import make_user

User = get_user_model()


class RegisterTests(APITestCase):
    def payload(self, **overrides):
        data = {
            'name': 'Sita Sharma',
            'email': 'Sita@Example.com',
            'password': 'secret123',
            'phone': '9800000001',
            'bloodGroup': 'B+',
            'age': 30,
            'location': {'type': 'Point', 'coordinates': [85.324, 27.7172], 'address': 'Kathmandu'},
        }
        data.update(overrides)
        return data

    def test_register_returns_tokens_and_profile(self):
        response = self.client.post('/api/auth/register/', self.payload(), format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIn('access', response.data['tokens'])
        self.assertIn('refresh', response.data['tokens'])
        user = response.data['user']
        self.assertEqual(user['email'], 'sita@example.com')
        self.assertEqual(user['bloodGroup'], 'B+')
        self.assertEqual(user['role'], 'donor')
        self.assertTrue(user['isDonor'])
        self.assertEqual(user['location']['coordinates'], [85.324, 27.7172])
        self.assertEqual(user['badges'], [])

    def test_duplicate_email(self):
        self.client.post('/api/auth/register/', self.payload(), format='json')
        response = self.client.post('/api/auth/register/', self.payload(email='sita@example.com'), format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(response.data['success'])
        self.assertIn('email', response.data['errors'])

    def test_admin_role_cannot_be_self_assigned(self):
        response = self.client.post('/api/auth/register/', self.payload(role='admin'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('role', response.data['errors'])

    def test_age_bounds(self):
        response = self.client.post('/api/auth/register/', self.payload(age=16), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('age', response.data['errors'])


class LoginTests(APITestCase):
    def setUp(self):
        self.user = make_user(email='donor@example.com', username='donor')

    def test_login_with_email(self):
        response = self.client.post(
            '/api/auth/login/', {'email': 'DONOR@example.com', 'password': 'secret123'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data['tokens'])

    def test_login_with_username(self):
        response = self.client.post('/api/auth/login/', {'email': 'donor', 'password': 'secret123'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_wrong_password(self):
        response = self.client.post('/api/auth/login/', {'email': 'donor', 'password': 'nope'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['message'], 'Invalid credentials')

        self.user.refresh_from_db()
        self.assertEqual(self.user.failed_attempts, 1)

    @override_settings(MAX_FAILED_LOGINS=3)
    def test_account_locks_after_repeated_failures(self):
        for _ in range(3):
            self.client.post('/api/auth/login/', {'email': 'donor', 'password': 'nope'}, format='json')

        self.user.refresh_from_db()
        self.assertTrue(self.user.is_locked)

        response = self.client.post('/api/auth/login/', {'email': 'donor', 'password': 'secret123'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertIn('locked', response.data['message'])

    def test_successful_login_resets_failures(self):
        self.client.post('/api/auth/login/', {'email': 'donor', 'password': 'nope'}, format='json')
        self.client.post('/api/auth/login/', {'email': 'donor', 'password': 'secret123'}, format='json')

        self.user.refresh_from_db()
        self.assertEqual(self.user.failed_attempts, 0)

    def test_refresh_token(self):
        login = self.client.post('/api/auth/login/', {'email': 'donor', 'password': 'secret123'}, format='json')
        response = self.client.post(
            '/api/auth/token/refresh/', {'refresh': login.data['tokens']['refresh']}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)


class PasswordChangeTests(APITestCase):
    def setUp(self):
        self.user = make_user(password='secret123')
        self.client.force_authenticate(self.user)

    def test_change_password(self):
        response = self.client.put('/api/auth/password/', {
            'currentPassword': 'secret123', 'newPassword': 'newsecret456',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password('newsecret456'))

        self.client.force_authenticate(None)
        login = self.client.post('/api/auth/login/', {
            'email': self.user.email, 'password': 'newsecret456',
        }, format='json')
        self.assertEqual(login.status_code, status.HTTP_200_OK)

    def test_wrong_current_password(self):
        response = self.client.put('/api/auth/password/', {
            'currentPassword': 'nope', 'newPassword': 'newsecret456',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('currentPassword', response.data['errors'])
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password('secret123'))

    def test_short_new_password(self):
        response = self.client.put('/api/auth/password/', {
            'currentPassword': 'secret123', 'newPassword': '123',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('newPassword', response.data['errors'])

    def test_requires_login(self):
        self.client.force_authenticate(None)
        response = self.client.put('/api/auth/password/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
