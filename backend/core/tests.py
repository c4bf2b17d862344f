"""
Test suite for authentication and API error handling
Tests: register, login, me, logout, refresh, change password, error shapes
"""
from django.db import IntegrityError
from django.test import TestCase, override_settings
from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.test import APIRequestFactory
from rest_framework_simplejwt.tokens import AccessToken
from backend.core.exceptions import api_exception_handler, flatten_validation_errors, is_duplicate_key_error
from backend.core.models import User
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient


class RegisterTests(TestCase):

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_register_creates_agent(self):
        response = self.client.post('/api/auth/register', {
            'email': 'New.Agent@Example.com',
            'password': 'secret123',
            'name': 'New Agent',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['success'])
        self.assertEqual(response.data['user']['role'], User.ROLE_AGENT)
        self.assertEqual(response.data['user']['email'], 'new.agent@example.com')
        self.assertIn('token', response.data)
        self.assertTrue(User.objects.get(email='new.agent@example.com').check_password('secret123'))

    def test_register_existing_email(self):
        TestDataFactory.create_user(email='taken@example.com')
        response = self.client.post('/api/auth/register', {
            'email': 'taken@example.com',
            'password': 'secret123',
            'name': 'Someone',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'User already exists')

    def test_register_validation_failure(self):
        response = self.client.post('/api/auth/register', {
            'email': 'not-an-email',
            'password': '123',
            'name': 'X',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Validation failed')
        fields = {detail['field'] for detail in response.data['details']}
        self.assertIn('email', fields)
        self.assertIn('password', fields)


class LoginTests(TestCase):

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_manager(email='boss@example.com', password='secret123')

    def test_login_success(self):
        response = self.client.post('/api/auth/login', {
            'email': 'boss@example.com',
            'password': 'secret123',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['success'])
        self.assertEqual(response.data['user']['role'], User.ROLE_MANAGER)

        token = AccessToken(response.data['token'])
        self.assertEqual(token['user_id'], self.user.id)
        self.assertEqual(token['email'], 'boss@example.com')
        self.assertEqual(token['role'], User.ROLE_MANAGER)

    def test_login_wrong_password(self):
        response = self.client.post('/api/auth/login', {
            'email': 'boss@example.com',
            'password': 'wrong-pass',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['error'], 'Invalid credentials')

    def test_login_unknown_email(self):
        response = self.client.post('/api/auth/login', {
            'email': 'nobody@example.com',
            'password': 'secret123',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_refresh_returns_new_access_token(self):
        login = self.client.post('/api/auth/login', {
            'email': 'boss@example.com',
            'password': 'secret123',
        }, format='json')
        response = self.client.post('/api/auth/refresh', {'refresh': login.data['refresh']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)


class MeAndLogoutTests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user(name='Alex Agent', phone='5550111')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_me(self):
        response = self.client.get('/api/auth/me')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data['data']
        self.assertEqual(data['ID'], self.user.id)
        self.assertEqual(data['Name'], 'Alex Agent')
        self.assertEqual(data['Phone'], '5550111')
        self.assertFalse(data['IsManager'])

    def test_me_requires_token(self):
        self.client.logout()
        response = self.client.get('/api/auth/me')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertIn('error', response.data)

    def test_me_with_garbage_token(self):
        self.client.credentials(HTTP_AUTHORIZATION='Bearer not-a-token')
        response = self.client.get('/api/auth/me')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_logout_blacklists_refresh_token(self):
        login = AuthenticatedAPIClient().post('/api/auth/login', {
            'email': self.user.email,
            'password': 'testpass123',
        }, format='json')
        refresh = login.data['refresh']

        response = self.client.post('/api/auth/logout', {'refresh': refresh}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['success'])

        response = self.client.post('/api/auth/refresh', {'refresh': refresh}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_logout_without_token(self):
        response = AuthenticatedAPIClient().post('/api/auth/logout', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_change_password(self):
        response = self.client.post('/api/auth/change-password', {
            'current_password': 'testpass123',
            'new_password': 'brandnew456',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password('brandnew456'))
        self.assertIsNotNone(self.user.password_changed_at)

    def test_change_password_wrong_current(self):
        response = self.client.post('/api/auth/change-password', {
            'current_password': 'nope',
            'new_password': 'brandnew456',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class ExceptionHandlerTests(TestCase):

    def setUp(self):
        self.context = {'view': None, 'request': APIRequestFactory().get('/')}

    def test_flatten_nested_errors(self):
        errors = flatten_validation_errors({
            'customer': {'name': ['This field is required.']},
            'non_field_errors': ['Bad combination'],
        })
        self.assertIn({'field': 'customer.name', 'message': 'This field is required.'}, errors)
        self.assertIn({'field': None, 'message': 'Bad combination'}, errors)

    def test_validation_error_shape(self):
        response = api_exception_handler(ValidationError({'email': ['Enter a valid email address.']}), self.context)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['error'], 'Validation failed')
        self.assertEqual(response.data['details'][0]['field'], 'email')

    def test_duplicate_key_is_conflict(self):
        for message in ('UNIQUE constraint failed: agents.agent_code',
                        '(1062, "Duplicate entry \'AG1\' for key \'agent_code\'")',
                        'duplicate key value violates unique constraint "agents_agent_code_key"'):
            exc = IntegrityError(message)
            self.assertTrue(is_duplicate_key_error(exc))
            response = api_exception_handler(exc, self.context)
            self.assertEqual(response.status_code, 409)
            self.assertEqual(response.data['error'], 'Duplicate entry')

    def test_other_integrity_error_is_bad_request(self):
        response = api_exception_handler(IntegrityError('FOREIGN KEY constraint failed'), self.context)
        self.assertEqual(response.status_code, 400)

    @override_settings(DEBUG=False)
    def test_unexpected_error_hidden_in_production(self):
        with self.assertLogs('backend.core.exceptions', level='ERROR'):
            response = api_exception_handler(RuntimeError('secret detail'), self.context)
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.data['error'], 'Internal server error')

    @override_settings(DEBUG=True)
    def test_unexpected_error_shown_in_debug(self):
        with self.assertLogs('backend.core.exceptions', level='ERROR'):
            response = api_exception_handler(RuntimeError('secret detail'), self.context)
        self.assertEqual(response.data['error'], 'secret detail')
