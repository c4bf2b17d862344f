from django.contrib import admin
from .models import ProductConfig


@admin.register(ProductConfig)
class ProductConfigAdmin(admin.ModelAdmin):
    list_display = ['config_type', 'config_value', 'display_order', 'is_active', 'created_date']
    list_filter = ['config_type', 'is_active']
    search_fields = ['config_value']
    ordering = ['config_type', 'display_order']
