"""
Test suite for the database layer
Tests: environment parsing, connection helpers, SQL migration runner
"""
from datetime import timedelta
from io import StringIO
from pathlib import Path
import tempfile

from django.core.management import call_command
from django.db import transaction
from django.test import SimpleTestCase, TestCase
from django.utils import timezone

from backend.config.environment import (
    UnsupportedDatabaseError, build_database_settings, normalize_db_type, parse_duration, parse_size,
)
from backend.database.connection import execute, get_db_type, query, test_connection as probe_connection
from backend.database.migrator import (
    executed_migrations, migration_files, pending_migrations, run_migration_file, run_migrations, split_statements,
)
from backend.database.models import MigrationRecord


class EnvironmentTests(SimpleTestCase):

    def test_normalize_db_type(self):
        self.assertEqual(normalize_db_type('PostgreSQL'), 'postgresql')
        self.assertEqual(normalize_db_type('postgres'), 'postgresql')
        self.assertEqual(normalize_db_type(''), 'sqlite')
        with self.assertRaisesMessage(UnsupportedDatabaseError, 'Unsupported database type: oracle'):
            normalize_db_type('oracle')

    def test_postgres_settings(self):
        config = build_database_settings({
            'DB_TYPE': 'postgresql', 'DB_HOST': 'db.internal', 'DB_NAME': 'shop',
            'DB_USER': 'app', 'DB_PASSWORD': 'pw', 'DB_SSL': 'true',
        })
        self.assertEqual(config['ENGINE'], 'django.db.backends.postgresql')
        self.assertEqual(config['PORT'], '5432')
        self.assertEqual(config['OPTIONS']['sslmode'], 'require')

    def test_mysql_settings(self):
        config = build_database_settings({'DB_TYPE': 'mysql', 'DB_NAME': 'shop', 'DB_PORT': 3307})
        self.assertEqual(config['ENGINE'], 'django.db.backends.mysql')
        self.assertEqual(config['PORT'], '3307')
        self.assertEqual(config['OPTIONS'], {'charset': 'utf8mb4'})

    def test_sqlite_settings_create_parent_directory(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / 'nested' / 'app.sqlite'
            config = build_database_settings({'DB_TYPE': 'sqlite', 'SQLITE_PATH': str(path)})
            self.assertEqual(config['NAME'], str(path))
            self.assertTrue(path.parent.is_dir())

    def test_parse_duration(self):
        self.assertEqual(parse_duration('7d'), timedelta(days=7))
        self.assertEqual(parse_duration('12h'), timedelta(hours=12))
        self.assertEqual(parse_duration('3600'), timedelta(seconds=3600))
        self.assertEqual(parse_duration(''), timedelta(days=7))
        with self.assertRaises(ValueError):
            parse_duration('soon')

    def test_parse_size(self):
        self.assertEqual(parse_size('10MB'), 10 * 1024 * 1024)
        self.assertEqual(parse_size('512kb'), 512 * 1024)
        self.assertEqual(parse_size('100'), 100)


class ConnectionTests(TestCase):

    def test_db_type(self):
        self.assertEqual(get_db_type(), 'sqlite')

    def test_execute_and_query(self):
        result = execute(
            'INSERT INTO product_config (config_type, config_value, display_order, is_active) VALUES (%s, %s, %s, %s)',
            ['color', 'Teal', 3, True],
        )
        self.assertEqual(result['affected_rows'], 1)
        self.assertIsNotNone(result['insert_id'])

        rows = query('SELECT id, config_value FROM product_config WHERE config_value = %s', ['Teal'])
        self.assertEqual(rows, [{'id': result['insert_id'], 'config_value': 'Teal'}])

        result = execute('UPDATE product_config SET display_order = %s WHERE id = %s', [9, result['insert_id']])
        self.assertEqual(result['affected_rows'], 1)
        self.assertIsNone(result['insert_id'])

    def test_query_error_is_raised(self):
        with self.assertLogs('backend.database.connection', level='ERROR'):
            with self.assertRaises(Exception), transaction.atomic():
                query('SELECT * FROM no_such_table')

    def test_throwaway_sqlite_connection(self):
        with tempfile.TemporaryDirectory() as tmp:
            self.assertTrue(probe_connection({'DB_TYPE': 'sqlite', 'SQLITE_PATH': str(Path(tmp) / 'probe.sqlite')}))
        self.assertEqual(get_db_type(), 'sqlite')

    def test_unsupported_type(self):
        with self.assertRaises(UnsupportedDatabaseError):
            probe_connection({'DB_TYPE': 'mongodb'})


class MigratorTests(TestCase):

    def test_split_statements(self):
        script = """
        -- first table
        CREATE TABLE a (id INTEGER);
        -- second
        CREATE TABLE b (id INTEGER);
        """
        self.assertEqual(split_statements(script), ['CREATE TABLE a (id INTEGER)', 'CREATE TABLE b (id INTEGER)'])

    def test_files_are_sorted_per_dialect(self):
        for db_type in ('sqlite', 'postgresql', 'mysql'):
            names = [path.name for path in migration_files(db_type)]
            self.assertEqual(names, sorted(names))
            self.assertEqual(names[0], '001_initial_schema.sql')
        self.assertEqual(migration_files('oracle'), [])

    def test_test_database_is_migrated(self):
        executed = {row['filename'] for row in query('SELECT filename FROM migrations')}
        self.assertIn('001_initial_schema.sql', executed)
        self.assertEqual(pending_migrations(), [])

    def test_executed_migrations_come_from_records(self):
        self.assertEqual(MigrationRecord.objects.first().filename, '001_initial_schema.sql')
        MigrationRecord.objects.create(filename='999_manual_fix.sql', executed_at=timezone.now())
        self.assertIn('999_manual_fix.sql', executed_migrations())

    def test_run_migration_file_records_script(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / '900_scratch_notes.sql'
            path.write_text('-- scratch\nCREATE TABLE scratch_notes (id INTEGER PRIMARY KEY, body VARCHAR(50));\n')
            with self.assertLogs('backend.database.migrator', level='INFO'):
                run_migration_file(path)
        record = MigrationRecord.objects.get(filename='900_scratch_notes.sql')
        self.assertIsNotNone(record.executed_at)
        self.assertEqual(query('SELECT COUNT(*) AS n FROM scratch_notes')[0]['n'], 0)

    def test_run_migrations_is_idempotent(self):
        self.assertEqual(run_migrations(), [])

    def test_list_command(self):
        out = StringIO()
        call_command('run_sql_migrations', '--list', stdout=out)
        self.assertIn('001_initial_schema.sql', out.getvalue())

    def test_command_reports_up_to_date(self):
        out = StringIO()
        call_command('run_sql_migrations', stdout=out)
        self.assertIn('No pending migrations', out.getvalue())
