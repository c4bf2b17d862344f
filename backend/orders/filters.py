import django_filters
from django.db.models import Q
from .models import Order


class OrderFilter(django_filters.FilterSet):
    """Filters for the order list"""
    search = django_filters.CharFilter(method='filter_search', label='Search')
    order_status = django_filters.ChoiceFilter(choices=Order.STATUS_CHOICES)
    payment_status = django_filters.ChoiceFilter(choices=Order.PAYMENT_STATUS_CHOICES)
    order_type = django_filters.ChoiceFilter(choices=Order.ORDER_TYPE_CHOICES)
    agent = django_filters.NumberFilter(field_name='agent_id')
    date_from = django_filters.DateFilter(field_name='delivery_date', lookup_expr='gte')
    date_to = django_filters.DateFilter(field_name='delivery_date', lookup_expr='lte')

    class Meta:
        model = Order
        fields = ['search', 'order_status', 'payment_status', 'order_type', 'agent', 'date_from', 'date_to']

    def filter_search(self, queryset, name, value):
        """Order number, customer, product type, color or status"""
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(order_number__icontains=value) |
            Q(customer_name__icontains=value) |
            Q(product_type__icontains=value) |
            Q(product_color__icontains=value) |
            Q(order_status__icontains=value) |
            Q(items__product_type__icontains=value) |
            Q(items__color__icontains=value)
        ).distinct()
