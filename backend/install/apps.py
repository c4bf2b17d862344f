from django.apps import AppConfig


class InstallConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'backend.install'
