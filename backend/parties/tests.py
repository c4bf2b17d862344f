"""
Test suite for agents
Tests: agent codes, validation, login provisioning and password emails
"""
from django.core import mail
from django.test import TestCase
from rest_framework import status
from unittest import mock
from backend.core.models import User
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.parties.models import Agent
from backend.parties.passwords import PASSWORD_ALPHABET, generate_temp_password, set_agent_password
from backend.parties.serializers import AgentSerializer


class AgentModelTests(TestCase):

    def test_agent_code_generated(self):
        agent = TestDataFactory.create_agent()
        self.assertRegex(agent.agent_code, r'^AG\d{6}$')
        self.assertIsNotNone(agent.hire_date)

    def test_generated_code_is_unique(self):
        with mock.patch('backend.parties.models.time.time', return_value=1700000123.456):
            first = Agent.generate_agent_code()
        TestDataFactory.create_agent(agent_code=first)
        with mock.patch('backend.parties.models.time.time', side_effect=[1700000123.456, 1700000124.0]):
            second = Agent.generate_agent_code()
        self.assertEqual(first, 'AG123456')
        self.assertNotEqual(first, second)

    def test_explicit_code_kept(self):
        agent = TestDataFactory.create_agent(agent_code='AG000001')
        self.assertEqual(agent.agent_code, 'AG000001')


class AgentSerializerTests(TestCase):

    def valid_data(self, **overrides):
        data = {
            'first_name': ' Sam ',
            'last_name': 'Seller',
            'email': 'Sam@Example.com',
            'phone': '5550123',
            'commission_rate': '7.50',
            'target_sales': '5000.00',
            'status': 'Active',
        }
        data.update(overrides)
        return data

    def test_valid_agent(self):
        serializer = AgentSerializer(data=self.valid_data())
        self.assertTrue(serializer.is_valid(), serializer.errors)
        agent = serializer.save()
        self.assertEqual(agent.first_name, 'Sam')
        self.assertEqual(agent.email, 'sam@example.com')
        self.assertTrue(agent.agent_code.startswith('AG'))

    def test_invalid_status(self):
        serializer = AgentSerializer(data=self.valid_data(status='Retired'))
        self.assertFalse(serializer.is_valid())
        self.assertIn('status', serializer.errors)

    def test_commission_range(self):
        serializer = AgentSerializer(data=self.valid_data(commission_rate='120'))
        self.assertFalse(serializer.is_valid())
        self.assertIn('commission_rate', serializer.errors)

    def test_duplicate_code(self):
        TestDataFactory.create_agent(agent_code='AG111111')
        serializer = AgentSerializer(data=self.valid_data(agent_code='ag111111'))
        self.assertFalse(serializer.is_valid())
        self.assertEqual(serializer.errors['agent_code'][0], 'Agent code already exists')

    def test_required_fields(self):
        serializer = AgentSerializer(data={'first_name': 'Only'})
        self.assertFalse(serializer.is_valid())
        for field in ('last_name', 'email', 'phone'):
            self.assertIn(field, serializer.errors)


class AgentPasswordTests(TestCase):

    def setUp(self):
        self.manager = TestDataFactory.create_manager()
        self.agent = TestDataFactory.create_agent(first_name='Pat', last_name='Jones', email='pat@agents.test')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.manager)

    def test_generate_temp_password(self):
        password = generate_temp_password()
        self.assertEqual(len(password), 12)
        self.assertTrue(set(password) <= set(PASSWORD_ALPHABET))

    def test_first_password_creates_login(self):
        response = self.client.post(f'/api/agents/{self.agent.id}/password', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        password = response.data['temporary_password']
        self.assertEqual(len(password), 12)

        self.agent.refresh_from_db()
        user = self.agent.user
        self.assertEqual(user.email, 'pat@agents.test')
        self.assertEqual(user.role, User.ROLE_AGENT)
        self.assertTrue(user.check_password(password))
        self.assertIsNone(user.password_changed_at)

    def test_reset_existing_login(self):
        user, _, created = set_agent_password(self.agent, 'first-pass')
        self.assertTrue(created)
        response = self.client.post(f'/api/agents/{self.agent.id}/password', {'password': 'second-pass'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        user.refresh_from_db()
        self.assertTrue(user.check_password('second-pass'))

    def test_links_existing_user_by_email(self):
        existing = TestDataFactory.create_user(email='pat@agents.test')
        user, _, created = set_agent_password(self.agent)
        self.assertFalse(created)
        self.assertEqual(user.id, existing.id)

    def test_password_email(self):
        response = self.client.post(
            f'/api/agents/{self.agent.id}/password', {'send_email': True}, format='json',
        )
        self.assertTrue(response.data['email_sent'])
        self.assertEqual(len(mail.outbox), 1)
        self.assertIn(response.data['temporary_password'], mail.outbox[0].body)
        self.assertEqual(mail.outbox[0].to, ['pat@agents.test'])

    def test_requires_manager(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.post(f'/api/agents/{self.agent.id}/password', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_agent_me(self):
        set_agent_password(self.agent, 'agentpass')
        self.agent.refresh_from_db()
        self.client.authenticate_user(self.agent.user)
        response = self.client.get('/api/agents/me')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['id'], self.agent.id)
        self.assertTrue(response.data['has_login'])

    def test_agent_list_search(self):
        TestDataFactory.create_agent(first_name='Other', last_name='Person')
        response = self.client.get('/api/agents?search=jones')
        self.assertEqual([row['id'] for row in response.data], [self.agent.id])
