"""
Test suite for the installation wizard
Tests: status, database probe, .env rendering, install flow, initial seed
"""
from pathlib import Path
from unittest import mock
import shutil
import tempfile

from django.db import OperationalError
from django.test import SimpleTestCase, TestCase, override_settings
from dotenv import dotenv_values
from rest_framework import status
from rest_framework.test import APIClient

from backend.catalog.models import ProductConfig
from backend.core.models import User
from backend.install.envfile import JWT_SECRET_LENGTH, generate_secret, render_env, write_env
from backend.install.seed import SEED_COLORS, SEED_PRODUCT_TYPES, SEED_SIZES, seed_initial_data
from backend.inventory.models import StockItem

SQLITE_ENV = {'DB_TYPE': 'sqlite', 'SQLITE_PATH': '/var/lib/dresssync/app.sqlite', 'DB_SSL': 'false'}


class EnvFileTests(SimpleTestCase):

    def setUp(self):
        self.tmp = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.tmp, ignore_errors=True)

    def test_generate_secret(self):
        secret = generate_secret()
        self.assertEqual(len(secret), JWT_SECRET_LENGTH)
        self.assertTrue(secret.isalnum())
        self.assertNotEqual(secret, generate_secret())

    def test_render_env_round_trips_through_dotenv(self):
        content = render_env(
            {'DB_TYPE': 'postgresql', 'DB_HOST': 'db', 'DB_NAME': 'shop', 'DB_PASSWORD': 'p# "w"', 'DB_SSL': 'true'},
            {'port': 8000, 'smtpFrom': 'Shop <orders@shop.test>'},
            jwt_secret='s' * JWT_SECRET_LENGTH,
        )
        path = write_env(Path(self.tmp) / 'conf' / '.env', content)
        values = dotenv_values(path)
        self.assertEqual(values['DB_TYPE'], 'postgresql')
        self.assertEqual(values['DB_PASSWORD'], 'p# "w"')
        self.assertEqual(values['DB_SSL'], 'true')
        self.assertEqual(values['PORT'], '8000')
        self.assertEqual(values['SMTP_PORT'], '587')
        self.assertEqual(values['SMTP_FROM'], 'Shop <orders@shop.test>')
        self.assertEqual(values['FRONTEND_URL'], 'http://localhost:5173')
        self.assertEqual(values['INSTALLATION_COMPLETE'], 'true')
        self.assertEqual(values['JWT_EXPIRES_IN'], '7d')

    def test_render_env_generates_secret(self):
        path = write_env(Path(self.tmp) / '.env', render_env(SQLITE_ENV, {}))
        self.assertEqual(len(dotenv_values(path)['JWT_SECRET']), JWT_SECRET_LENGTH)


class SeedTests(TestCase):

    def test_seed_creates_catalog_and_stock_grid(self):
        result = seed_initial_data()
        self.assertEqual(result['config_values'], len(SEED_PRODUCT_TYPES) + len(SEED_COLORS) + len(SEED_SIZES))
        self.assertEqual(result['stock_items'], len(SEED_PRODUCT_TYPES) * len(SEED_COLORS) * len(SEED_SIZES))
        self.assertFalse(StockItem.objects.exclude(quantity=0).exists())
        self.assertEqual(
            list(ProductConfig.objects.filter(config_type=ProductConfig.TYPE_SIZE).values_list('config_value', flat=True)[:3]),
            ['XS', 'S', 'M'],
        )

    def test_seed_is_idempotent(self):
        seed_initial_data()
        self.assertEqual(seed_initial_data(), {'config_values': 0, 'stock_items': 0})


@override_settings(INSTALLATION_COMPLETE=False)
class InstallAPITests(TestCase):

    def setUp(self):
        self.tmp = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.tmp, ignore_errors=True)
        self.env_file = Path(self.tmp) / '.env'
        self.client = APIClient()

    def payload(self, **overrides):
        payload = {
            'dbConfig': {'dbType': 'sqlite', 'sqlitePath': str(Path(self.tmp) / 'app.sqlite')},
            'adminUser': {'name': 'Store Owner', 'email': 'Owner@Shop.test', 'password': 'ownerpass123'},
            'appConfig': {'port': 3001},
        }
        payload.update(overrides)
        return payload

    def run_install(self, payload=None):
        with override_settings(ENV_FILE=self.env_file), \
                mock.patch('backend.install.views.load_dotenv') as load_dotenv, \
                mock.patch('backend.install.views.setup_database') as setup_database, \
                mock.patch('backend.install.views.call_command') as call_command:
            response = self.client.post('/api/install/install', payload or self.payload(), format='json')
        return response, setup_database, call_command, load_dotenv

    def test_status(self):
        response = self.client.get('/api/install/status')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {'installed': False})

        with override_settings(INSTALLATION_COMPLETE=True):
            response = self.client.get('/api/install/status')
        self.assertEqual(response.data, {'installed': True})

    def test_database_probe(self):
        response = self.client.post('/api/install/test-db', {
            'dbType': 'sqlite', 'sqlitePath': str(Path(self.tmp) / 'probe.sqlite'),
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['success'])

    def test_database_probe_failure(self):
        with mock.patch('backend.install.views.test_connection', side_effect=OperationalError('connection refused')):
            response = self.client.post('/api/install/test-db', {
                'dbType': 'postgres', 'host': 'db.invalid', 'database': 'shop',
            }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {'error': 'connection refused'})

    def test_database_name_required(self):
        response = self.client.post('/api/install/test-db', {'dbType': 'mysql'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['details'][0]['field'], 'database')

    def test_unsupported_database_type(self):
        response = self.client.post('/api/install/test-db', {'dbType': 'oracle'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_install(self):
        response, setup_database, call_command, load_dotenv = self.run_install()
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertTrue(response.data['success'])

        values = dotenv_values(self.env_file)
        self.assertEqual(values['DB_TYPE'], 'sqlite')
        self.assertEqual(values['SQLITE_PATH'], str(Path(self.tmp) / 'app.sqlite'))
        self.assertEqual(len(values['JWT_SECRET']), JWT_SECRET_LENGTH)

        setup_database.assert_called_once()
        self.assertEqual(setup_database.call_args[0][0]['DB_TYPE'], 'sqlite')
        call_command.assert_called_once_with('migrate', interactive=False, verbosity=0)
        load_dotenv.assert_called_once_with(self.env_file, override=True)

        manager = User.objects.get(email='owner@shop.test')
        self.assertTrue(manager.is_manager)
        self.assertTrue(manager.check_password('ownerpass123'))
        self.assertTrue(StockItem.objects.exists())

    def test_install_promotes_existing_account(self):
        User.objects.create_user(email='owner@shop.test', password='oldpass123', name='Old')
        response, *_ = self.run_install()
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        manager = User.objects.get(email='owner@shop.test')
        self.assertEqual(manager.role, User.ROLE_MANAGER)
        self.assertTrue(manager.check_password('ownerpass123'))

    def test_install_validation(self):
        payload = self.payload(adminUser={'name': 'Owner', 'email': 'not-an-email', 'password': '123'})
        response, setup_database, *_ = self.run_install(payload)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual({d['field'] for d in response.data['details']}, {'adminUser.email', 'adminUser.password'})
        setup_database.assert_not_called()
        self.assertFalse(self.env_file.exists())

    def test_install_reports_setup_failure(self):
        with override_settings(ENV_FILE=self.env_file), \
                mock.patch('backend.install.views.load_dotenv'), \
                mock.patch('backend.install.views.setup_database', side_effect=OperationalError('disk full')):
            with self.assertLogs('backend.install', level='ERROR'):
                response = self.client.post('/api/install/install', self.payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data, {'error': 'disk full'})
        self.assertFalse(User.objects.filter(email='owner@shop.test').exists())

    @override_settings(INSTALLATION_COMPLETE=True)
    def test_install_refused_once_installed(self):
        response, setup_database, *_ = self.run_install()
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        setup_database.assert_not_called()
