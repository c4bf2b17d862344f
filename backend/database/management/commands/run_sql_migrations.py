"""
Management command to apply pending .sql migrations without running
Django's own migrate.
"""
from django.core.management.base import BaseCommand
from django.db import DEFAULT_DB_ALIAS

from backend.database.connection import get_db_type
from backend.database.migrator import migration_files, run_migrations


class Command(BaseCommand):
    help = 'Apply pending SQL migrations for the configured database'

    def add_arguments(self, parser):
        parser.add_argument(
            '--database',
            default=DEFAULT_DB_ALIAS,
            help='Database alias to migrate (default: "default")',
        )
        parser.add_argument(
            '--list',
            action='store_true',
            help='Only list the migration files for this database',
        )

    def handle(self, *args, **options):
        using = options['database']
        db_type = get_db_type(using)

        if options['list']:
            for path in migration_files(db_type):
                self.stdout.write(path.name)
            return

        self.stdout.write(f'Running SQL migrations for {db_type}...')
        applied = run_migrations(using=using)
        if applied:
            for name in applied:
                self.stdout.write(self.style.SUCCESS(f'  Applied {name}'))
        else:
            self.stdout.write(self.style.SUCCESS('No pending migrations'))
