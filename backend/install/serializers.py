from rest_framework import serializers
from django.contrib.auth.password_validation import validate_password
from backend.config.environment import DB_TYPE_ALIASES, SUPPORTED_DB_TYPES, normalize_db_type


class DatabaseConfigSerializer(serializers.Serializer):
    """Connection details as posted by the installation wizard"""
    dbType = serializers.ChoiceField(choices=list(SUPPORTED_DB_TYPES) + list(DB_TYPE_ALIASES))
    host = serializers.CharField(required=False, allow_blank=True, default='')
    port = serializers.CharField(required=False, allow_blank=True, allow_null=True, default='')
    database = serializers.CharField(required=False, allow_blank=True, default='')
    username = serializers.CharField(required=False, allow_blank=True, default='')
    password = serializers.CharField(required=False, allow_blank=True, default='', trim_whitespace=False)
    sqlitePath = serializers.CharField(required=False, allow_blank=True, allow_null=True, default='')
    ssl = serializers.BooleanField(required=False, default=False)

    def validate(self, attrs):
        attrs['dbType'] = normalize_db_type(attrs['dbType'])
        if attrs['dbType'] != 'sqlite' and not attrs['database']:
            raise serializers.ValidationError({'database': 'Database name is required'})
        return attrs


def database_env(data):
    """Validated wizard connection details as the DB_* mapping used by backend.config.environment"""
    return {
        'DB_TYPE': data['dbType'],
        'DB_HOST': data['host'],
        'DB_PORT': data['port'] or '',
        'DB_NAME': data['database'],
        'DB_USER': data['username'],
        'DB_PASSWORD': data['password'],
        'DB_SSL': 'true' if data['ssl'] else 'false',
        'SQLITE_PATH': data['sqlitePath'] or '',
    }


class AdminUserSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=150)
    email = serializers.EmailField()
    password = serializers.CharField(min_length=6, write_only=True, trim_whitespace=False)

    def validate_email(self, value):
        return value.strip().lower()

    def validate_password(self, value):
        validate_password(value)
        return value


class AppConfigSerializer(serializers.Serializer):
    port = serializers.IntegerField(required=False, allow_null=True, min_value=1, max_value=65535)
    frontendUrl = serializers.CharField(required=False, allow_blank=True, default='')
    smtpHost = serializers.CharField(required=False, allow_blank=True, default='')
    smtpPort = serializers.IntegerField(required=False, allow_null=True, min_value=1, max_value=65535)
    smtpUser = serializers.CharField(required=False, allow_blank=True, default='')
    smtpPassword = serializers.CharField(required=False, allow_blank=True, default='', trim_whitespace=False)
    smtpFrom = serializers.CharField(required=False, allow_blank=True, default='')


class InstallSerializer(serializers.Serializer):
    dbConfig = DatabaseConfigSerializer()
    adminUser = AdminUserSerializer()
    appConfig = AppConfigSerializer(required=False, default=dict)
