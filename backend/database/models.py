from django.db import models


class MigrationRecord(models.Model):
    """Row written by the SQL migration runner for each executed script"""
    filename = models.CharField(max_length=255, unique=True)
    executed_at = models.DateTimeField()

    def __str__(self):
        return self.filename

    class Meta:
        managed = False
        db_table = 'migrations'
        ordering = ['filename']
