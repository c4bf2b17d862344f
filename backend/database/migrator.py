"""
SQL migration runner

Business tables are defined by plain .sql scripts, one directory per database
flavour (sql/postgresql, sql/mysql, sql/sqlite). Scripts run in filename order
and each executed file is recorded in the `migrations` table. There are no
down migrations.
"""
from pathlib import Path

from django.db import DEFAULT_DB_ALIAS, connections, transaction
from django.utils import timezone

from .connection import get_db_type
from .models import MigrationRecord
import logging

logger = logging.getLogger(__name__)

SQL_ROOT = Path(__file__).resolve().parent / 'sql'

MIGRATIONS_TABLE_DDL = {
    'postgresql': """
        CREATE TABLE IF NOT EXISTS migrations (
            id SERIAL PRIMARY KEY,
            filename VARCHAR(255) NOT NULL UNIQUE,
            executed_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
    """,
    'mysql': """
        CREATE TABLE IF NOT EXISTS migrations (
            id INT AUTO_INCREMENT PRIMARY KEY,
            filename VARCHAR(255) NOT NULL UNIQUE,
            executed_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
    """,
    'sqlite': """
        CREATE TABLE IF NOT EXISTS migrations (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            filename VARCHAR(255) NOT NULL UNIQUE,
            executed_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
    """,
}


def split_statements(sql):
    """Drop `--` comment lines and split a script on ';'"""
    lines = [line for line in sql.splitlines() if not line.strip().startswith('--')]
    statements = '\n'.join(lines).split(';')
    return [statement.strip() for statement in statements if statement.strip()]


def migration_files(db_type):
    directory = SQL_ROOT / db_type
    if not directory.is_dir():
        return []
    return sorted(directory.glob('*.sql'), key=lambda path: path.name)


def create_migrations_table(using=DEFAULT_DB_ALIAS):
    db_type = get_db_type(using)
    with connections[using].cursor() as cursor:
        cursor.execute(MIGRATIONS_TABLE_DDL[db_type])


def executed_migrations(using=DEFAULT_DB_ALIAS):
    return set(MigrationRecord.objects.using(using).values_list('filename', flat=True))


def pending_migrations(using=DEFAULT_DB_ALIAS):
    executed = executed_migrations(using)
    return [path for path in migration_files(get_db_type(using)) if path.name not in executed]


def run_migration_file(path, using=DEFAULT_DB_ALIAS):
    """Execute every statement of one script and record it, atomically"""
    statements = split_statements(path.read_text(encoding='utf-8'))
    with transaction.atomic(using=using):
        with connections[using].cursor() as cursor:
            for statement in statements:
                cursor.execute(statement)
        MigrationRecord.objects.using(using).create(filename=path.name, executed_at=timezone.now())
    logger.info(f"Executed migration: {path.name}")


def run_migrations(using=DEFAULT_DB_ALIAS):
    """Apply every pending .sql migration; returns the filenames applied"""
    logger.info("Running SQL migrations...")
    create_migrations_table(using)

    applied = []
    for path in pending_migrations(using):
        try:
            run_migration_file(path, using)
        except Exception as e:
            logger.error(f"Migration {path.name} failed: {e}")
            raise
        applied.append(path.name)

    if applied:
        logger.info(f"Applied {len(applied)} SQL migration(s)")
    else:
        logger.info("SQL migrations up to date")
    return applied
