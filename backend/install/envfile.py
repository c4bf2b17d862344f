"""
The `.env` file written by the installation wizard.

Keys match what backend.config.settings and backend.config.environment read,
so after writing the file and reloading it with python-dotenv the running
process sees the new configuration.
"""
from pathlib import Path
import secrets
import string

JWT_SECRET_LENGTH = 64
SECRET_ALPHABET = string.ascii_letters + string.digits

ENV_TEMPLATE = """# Database Configuration
DB_TYPE={DB_TYPE}
DB_HOST={DB_HOST}
DB_PORT={DB_PORT}
DB_NAME={DB_NAME}
DB_USER={DB_USER}
DB_PASSWORD={DB_PASSWORD}
SQLITE_PATH={SQLITE_PATH}
DB_SSL={DB_SSL}

# Application Configuration
APP_ENV=production
PORT={PORT}
FRONTEND_URL={FRONTEND_URL}
JWT_SECRET={JWT_SECRET}
JWT_EXPIRES_IN=7d

# Email Configuration
SMTP_HOST={SMTP_HOST}
SMTP_PORT={SMTP_PORT}
SMTP_USER={SMTP_USER}
SMTP_PASSWORD={SMTP_PASSWORD}
SMTP_FROM={SMTP_FROM}

# File Upload
MAX_FILE_SIZE=10MB
UPLOAD_PATH=uploads

# Installation Status
INSTALLATION_COMPLETE=true
"""


def generate_secret(length=JWT_SECRET_LENGTH):
    return ''.join(secrets.choice(SECRET_ALPHABET) for _ in range(length))


def _quote(value):
    """Quote values dotenv would otherwise split or treat as comments"""
    text = '' if value is None else str(value)
    if any(ch in text for ch in ' #"\'\n='):
        escaped = text.replace('\\', '\\\\').replace('"', '\\"').replace('\n', '\\n')
        return f'"{escaped}"'
    return text


def render_env(database, app_config, jwt_secret=None):
    """
    `database` holds DB_* keys; `app_config` the wizard's application block
    (port, frontendUrl, smtpHost, ...).
    """
    values = {
        'DB_TYPE': database.get('DB_TYPE', 'sqlite'),
        'DB_HOST': database.get('DB_HOST', ''),
        'DB_PORT': database.get('DB_PORT', ''),
        'DB_NAME': database.get('DB_NAME', ''),
        'DB_USER': database.get('DB_USER', ''),
        'DB_PASSWORD': database.get('DB_PASSWORD', ''),
        'SQLITE_PATH': database.get('SQLITE_PATH', ''),
        'DB_SSL': 'true' if database.get('DB_SSL') in (True, 'true') else 'false',
        'PORT': app_config.get('port') or 3001,
        'FRONTEND_URL': app_config.get('frontendUrl') or 'http://localhost:5173',
        'JWT_SECRET': jwt_secret or generate_secret(),
        'SMTP_HOST': app_config.get('smtpHost', ''),
        'SMTP_PORT': app_config.get('smtpPort') or 587,
        'SMTP_USER': app_config.get('smtpUser', ''),
        'SMTP_PASSWORD': app_config.get('smtpPassword', ''),
        'SMTP_FROM': app_config.get('smtpFrom', ''),
    }
    return ENV_TEMPLATE.format(**{key: _quote(value) for key, value in values.items()})


def write_env(path, content):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding='utf-8')
    return path
