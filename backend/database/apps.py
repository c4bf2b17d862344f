from django.apps import AppConfig
from django.db.models.signals import post_migrate


def run_sql_migrations(sender, using='default', **kwargs):
    """Bring the business tables up to date whenever `migrate` runs"""
    from .migrator import run_migrations
    run_migrations(using=using)


class DatabaseConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'backend.database'

    def ready(self):
        post_migrate.connect(run_sql_migrations, sender=self, dispatch_uid='backend.database.run_sql_migrations')
