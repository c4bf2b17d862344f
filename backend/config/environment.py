"""
Environment parsing shared by settings, the connection layer and the
installation wizard.

Values come from the process environment (populated from `.env` by
python-dotenv) using the same keys the installer writes.
"""
import os
import re
from datetime import timedelta
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent.parent

SUPPORTED_DB_TYPES = ('postgresql', 'mysql', 'sqlite')

DB_TYPE_ALIASES = {
    'postgres': 'postgresql',
    'pg': 'postgresql',
    'mariadb': 'mysql',
    'sqlite3': 'sqlite',
}

DB_ENGINES = {
    'postgresql': 'django.db.backends.postgresql',
    'mysql': 'django.db.backends.mysql',
    'sqlite': 'django.db.backends.sqlite3',
}

DEFAULT_DB_PORTS = {
    'postgresql': '5432',
    'mysql': '3306',
}

DEFAULT_SQLITE_PATH = 'data/database.sqlite'

DB_ENV_KEYS = ('DB_TYPE', 'DB_HOST', 'DB_PORT', 'DB_NAME', 'DB_USER', 'DB_PASSWORD', 'DB_SSL', 'SQLITE_PATH')


class UnsupportedDatabaseError(ValueError):
    """Raised when DB_TYPE names an engine we cannot talk to"""


def env_flag(value, default=False):
    if value is None or value == '':
        return default
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')


def normalize_db_type(value):
    """Map a DB_TYPE value (or alias) to one of SUPPORTED_DB_TYPES"""
    db_type = (value or 'sqlite').strip().lower()
    db_type = DB_TYPE_ALIASES.get(db_type, db_type)
    if db_type not in SUPPORTED_DB_TYPES:
        raise UnsupportedDatabaseError(f'Unsupported database type: {value}')
    return db_type


def resolve_sqlite_path(path):
    sqlite_path = Path(path or DEFAULT_SQLITE_PATH)
    if not sqlite_path.is_absolute():
        sqlite_path = BASE_DIR / sqlite_path
    return sqlite_path


def read_database_env(environ=None):
    """Collect the DB_* keys from an environment mapping"""
    environ = os.environ if environ is None else environ
    return {key: environ.get(key, '') for key in DB_ENV_KEYS}


def build_database_settings(config):
    """
    Translate a DB_* mapping into a Django DATABASES entry.

    `config` uses the same keys as the `.env` file (DB_TYPE, DB_HOST, ...).
    The SQLite parent directory is created so a fresh checkout can connect.
    """
    db_type = normalize_db_type(config.get('DB_TYPE'))

    if db_type == 'sqlite':
        sqlite_path = resolve_sqlite_path(config.get('SQLITE_PATH'))
        sqlite_path.parent.mkdir(parents=True, exist_ok=True)
        return {
            'ENGINE': DB_ENGINES[db_type],
            'NAME': str(sqlite_path),
        }

    options = {}
    use_ssl = env_flag(config.get('DB_SSL'))
    if db_type == 'postgresql':
        options['sslmode'] = 'require' if use_ssl else 'prefer'
    else:
        options['charset'] = 'utf8mb4'
        if use_ssl:
            options['ssl_mode'] = 'REQUIRED'

    return {
        'ENGINE': DB_ENGINES[db_type],
        'NAME': config.get('DB_NAME') or 'dresssync',
        'USER': config.get('DB_USER') or '',
        'PASSWORD': config.get('DB_PASSWORD') or '',
        'HOST': config.get('DB_HOST') or 'localhost',
        'PORT': str(config.get('DB_PORT') or DEFAULT_DB_PORTS[db_type]),
        'OPTIONS': options,
    }


def db_type_for_engine(engine):
    """Reverse lookup from a Django ENGINE path to our DB_TYPE name"""
    for db_type, engine_path in DB_ENGINES.items():
        if engine_path == engine:
            return db_type
    raise UnsupportedDatabaseError(f'Unsupported database type: {engine}')


_DURATION_RE = re.compile(r'^\s*(\d+)\s*(ms|s|m|h|d|w)?\s*$', re.IGNORECASE)
_DURATION_UNITS = {
    'ms': 'milliseconds',
    's': 'seconds',
    'm': 'minutes',
    'h': 'hours',
    'd': 'days',
    'w': 'weeks',
}


def parse_duration(value, default=timedelta(days=7)):
    """
    Parse token lifetimes such as "7d", "12h" or "3600".
    A bare number is a count of seconds.
    """
    if not value:
        return default
    match = _DURATION_RE.match(str(value))
    if not match:
        raise ValueError(f'Invalid duration: {value}')
    amount, unit = match.groups()
    unit = (unit or 's').lower()
    return timedelta(**{_DURATION_UNITS[unit]: int(amount)})


_SIZE_RE = re.compile(r'^\s*(\d+(?:\.\d+)?)\s*(b|kb|mb|gb)?\s*$', re.IGNORECASE)
_SIZE_UNITS = {
    'b': 1,
    'kb': 1024,
    'mb': 1024 * 1024,
    'gb': 1024 * 1024 * 1024,
}


def parse_size(value, default=10 * 1024 * 1024):
    """Parse upload limits such as "10MB" into a byte count"""
    if not value:
        return default
    match = _SIZE_RE.match(str(value))
    if not match:
        raise ValueError(f'Invalid size: {value}')
    amount, unit = match.groups()
    return int(float(amount) * _SIZE_UNITS[(unit or 'b').lower()])
