from django.db import models
from django.utils import timezone
from decimal import Decimal
from backend.core.models import User
import time


class Agent(models.Model):
    """Sales agent profile; optionally linked to a login account"""
    STATUS_ACTIVE = 'Active'
    STATUS_INACTIVE = 'Inactive'
    STATUS_SUSPENDED = 'Suspended'
    STATUS_CHOICES = [
        (STATUS_ACTIVE, 'Active'),
        (STATUS_INACTIVE, 'Inactive'),
        (STATUS_SUSPENDED, 'Suspended'),
    ]

    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='agent_profiles')
    agent_code = models.CharField(max_length=20, unique=True)
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    email = models.EmailField(max_length=254)
    phone = models.CharField(max_length=30)
    territory = models.CharField(max_length=100, blank=True, default='')
    commission_rate = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0.00'))  # percent of sales
    hire_date = models.DateField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE)
    target_sales = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.full_name} ({self.agent_code})"

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()

    @staticmethod
    def generate_agent_code():
        """AG followed by the last six digits of the current epoch milliseconds"""
        agent_code = f"AG{str(int(time.time() * 1000))[-6:]}"
        while Agent.objects.filter(agent_code=agent_code).exists():
            time.sleep(0.001)
            agent_code = f"AG{str(int(time.time() * 1000))[-6:]}"
        return agent_code

    def save(self, *args, **kwargs):
        if not self.agent_code:
            self.agent_code = Agent.generate_agent_code()
        if not self.hire_date and self._state.adding:
            self.hire_date = timezone.localdate()
        super().save(*args, **kwargs)

    class Meta:
        managed = False
        db_table = 'agents'
        ordering = ['first_name', 'last_name']
