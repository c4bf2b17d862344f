"""
Database connection abstraction

Thin layer over Django's connection handling so the rest of the code (and the
installation wizard) can switch between PostgreSQL, MySQL and SQLite from a
DB_* configuration and run raw SQL with one placeholder style (%s).
"""
import os

from django.conf import settings
from django.db import DEFAULT_DB_ALIAS, connections
from django.db.utils import ConnectionHandler

from backend.config.environment import (
    build_database_settings, db_type_for_engine, normalize_db_type, read_database_env,
)
import logging

logger = logging.getLogger(__name__)


def get_db_type(using=DEFAULT_DB_ALIAS):
    """Active database flavour: 'postgresql', 'mysql' or 'sqlite'"""
    return db_type_for_engine(connections[using].settings_dict['ENGINE'])


def _check(connection):
    connection.ensure_connection()
    with connection.cursor() as cursor:
        cursor.execute('SELECT 1')
        cursor.fetchone()


def setup_database(config=None):
    """
    Point the default connection at the database described by `config`
    (DB_* keys, defaults to the process environment) and verify it.
    """
    config = read_database_env() if config is None else config
    db_type = normalize_db_type(config.get('DB_TYPE') or os.getenv('DB_TYPE'))
    database_settings = build_database_settings({**config, 'DB_TYPE': db_type})

    close_database()
    configured = connections.configure_settings({DEFAULT_DB_ALIAS: database_settings})[DEFAULT_DB_ALIAS]
    settings.DATABASES[DEFAULT_DB_ALIAS] = configured
    connections.settings[DEFAULT_DB_ALIAS] = configured
    # Drop the cached wrapper so the next access builds one from the new settings
    del connections[DEFAULT_DB_ALIAS]

    try:
        _check(connections[DEFAULT_DB_ALIAS])
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        raise

    logger.info(f"Connected to {db_type} database")
    return connections[DEFAULT_DB_ALIAS]


def test_connection(config):
    """
    Open a throwaway connection with `config`, run SELECT 1 and close it.
    The default connection is left untouched.
    """
    database_settings = build_database_settings(config)
    handler = ConnectionHandler({DEFAULT_DB_ALIAS: database_settings})
    connection = handler[DEFAULT_DB_ALIAS]
    try:
        _check(connection)
    finally:
        connection.close()
    return True


def dictfetchall(cursor):
    """Return all rows from a cursor as a list of dicts"""
    if cursor.description is None:
        return []
    columns = [col[0] for col in cursor.description]
    return [dict(zip(columns, row)) for row in cursor.fetchall()]


def query(sql, params=None, using=DEFAULT_DB_ALIAS):
    """Run a statement and return its rows as dicts"""
    try:
        with connections[using].cursor() as cursor:
            cursor.execute(sql, params or [])
            return dictfetchall(cursor)
    except Exception as e:
        logger.error(f"Query error: {e} [{sql}]")
        raise


def execute(sql, params=None, using=DEFAULT_DB_ALIAS):
    """
    Run a write statement.

    Returns {'affected_rows': n, 'insert_id': id or None}. PostgreSQL has no
    lastrowid, so INSERTs there get RETURNING id appended.
    """
    statement = sql.strip().rstrip(';')
    is_insert = statement[:6].upper() == 'INSERT'
    returning = (
        is_insert
        and get_db_type(using) == 'postgresql'
        and 'RETURNING' not in statement.upper()
    )
    if returning:
        statement = f"{statement} RETURNING id"

    try:
        with connections[using].cursor() as cursor:
            cursor.execute(statement, params or [])
            insert_id = None
            if returning:
                row = cursor.fetchone()
                insert_id = row[0] if row else None
            elif is_insert:
                insert_id = cursor.lastrowid
            return {'affected_rows': cursor.rowcount, 'insert_id': insert_id}
    except Exception as e:
        logger.error(f"Execute error: {e} [{sql}]")
        raise


def close_database(using=DEFAULT_DB_ALIAS):
    connections[using].close()
    logger.debug(f"Closed database connection '{using}'")
