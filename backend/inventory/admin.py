from django.contrib import admin
from .models import StockItem, StockMovement


@admin.register(StockItem)
class StockItemAdmin(admin.ModelAdmin):
    list_display = ['product_type', 'color', 'neck_type', 'size', 'quantity', 'min_threshold', 'selling_price', 'updated_at']
    list_filter = ['product_type', 'color', 'size']
    search_fields = ['product_type', 'color', 'batch_number', 'supplier']
    ordering = ['product_type', 'color', 'size']


@admin.register(StockMovement)
class StockMovementAdmin(admin.ModelAdmin):
    list_display = ['stock_item', 'movement_type', 'quantity', 'reason', 'order', 'user', 'created_at']
    list_filter = ['movement_type', 'created_at']
    search_fields = ['reason']
    ordering = ['-created_at']
    readonly_fields = ['created_at']
