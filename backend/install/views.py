from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, authentication_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.core.management import call_command
from django.db import DatabaseError, transaction
from django.utils import timezone
from dotenv import load_dotenv
from backend.core.models import User
from backend.database.connection import setup_database, test_connection
from .envfile import render_env, write_env
from .seed import seed_initial_data
from .serializers import DatabaseConfigSerializer, InstallSerializer, database_env
import logging

logger = logging.getLogger('backend.install')

# Failures the wizard reports back to the browser instead of a generic 500
SETUP_ERRORS = (DatabaseError, ImproperlyConfigured, ValueError, OSError)


def is_installed():
    return bool(settings.INSTALLATION_COMPLETE)


def create_manager(name, email, password):
    """Create the first manager, or promote and reset an existing account with that email"""
    user = User.objects.filter(email=email).first()
    if user is None:
        return User.objects.create_user(
            email=email, password=password, name=name,
            role=User.ROLE_MANAGER, is_staff=True, password_changed_at=timezone.now(),
        )
    user.name = name
    user.role = User.ROLE_MANAGER
    user.is_staff = True
    user.is_active = True
    user.set_password(password)
    user.password_changed_at = timezone.now()
    user.save()
    return user


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def install_status(request):
    return Response({'installed': is_installed()})


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def test_database(request):
    """Try the posted connection details without touching the live connection"""
    serializer = DatabaseConfigSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    config = database_env(serializer.validated_data)

    try:
        test_connection(config)
    except SETUP_ERRORS as e:
        logger.warning(f"Database test failed for {config['DB_TYPE']}: {e}")
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response({'success': True, 'message': 'Database connection successful'})


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def install(request):
    """
    Write .env, switch to the configured database, run Django and SQL
    migrations, create the manager account and seed the catalog.
    """
    if is_installed():
        return Response({'error': 'Application is already installed'}, status=status.HTTP_403_FORBIDDEN)

    serializer = InstallSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    database = database_env(data['dbConfig'])
    admin = data['adminUser']

    try:
        env_path = write_env(settings.ENV_FILE, render_env(database, data.get('appConfig') or {}))
        load_dotenv(env_path, override=True)
        logger.info(f"Wrote configuration to {env_path}")

        setup_database(database)
        call_command('migrate', interactive=False, verbosity=0)

        with transaction.atomic():
            manager = create_manager(admin['name'], admin['email'], admin['password'])
        seeded = seed_initial_data()
    except SETUP_ERRORS as e:
        logger.exception(f"Installation failed: {e}")
        return Response({'error': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    settings.INSTALLATION_COMPLETE = True
    logger.info(f"Installation complete: manager {manager.email}, seeded {seeded}")
    return Response({'success': True, 'message': 'Installation completed successfully'})
