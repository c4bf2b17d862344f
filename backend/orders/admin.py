from django.contrib import admin
from .models import Order, OrderItem


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ['line_total']


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['order_number', 'customer_name', 'agent', 'order_type', 'order_status', 'payment_status',
                    'total_amount', 'paid_amount', 'delivery_date', 'event_date']
    list_filter = ['order_status', 'payment_status', 'order_type', 'delivery_date']
    search_fields = ['order_number', 'customer_name', 'customer_phone', 'product_type']
    ordering = ['-created_at']
    readonly_fields = ['order_number', 'created_at', 'updated_at']
    inlines = [OrderItemInline]
