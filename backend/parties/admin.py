from django.contrib import admin
from .models import Agent


@admin.register(Agent)
class AgentAdmin(admin.ModelAdmin):
    list_display = ['agent_code', 'first_name', 'last_name', 'email', 'phone', 'territory', 'status', 'target_sales']
    list_filter = ['status', 'territory']
    search_fields = ['agent_code', 'first_name', 'last_name', 'email', 'phone']
    ordering = ['first_name', 'last_name']
    readonly_fields = ['created_at', 'updated_at']
