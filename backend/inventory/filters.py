import django_filters
from django.db.models import F, Q
from .models import StockItem, StockMovement


class StockItemFilter(django_filters.FilterSet):
    """Filters for the stock list"""
    search = django_filters.CharFilter(method='filter_search', label='Search')
    product_type = django_filters.CharFilter(field_name='product_type', lookup_expr='iexact')
    color = django_filters.CharFilter(field_name='color', lookup_expr='iexact')
    neck_type = django_filters.CharFilter(field_name='neck_type', lookup_expr='iexact')
    size = django_filters.CharFilter(field_name='size', lookup_expr='iexact')
    low_stock = django_filters.BooleanFilter(method='filter_low_stock', label='Low Stock')

    class Meta:
        model = StockItem
        fields = ['search', 'product_type', 'color', 'neck_type', 'size', 'low_stock']

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(product_type__icontains=value) |
            Q(color__icontains=value) |
            Q(neck_type__icontains=value) |
            Q(size__iexact=value) |
            Q(supplier__icontains=value) |
            Q(batch_number__icontains=value)
        )

    def filter_low_stock(self, queryset, name, value):
        if value:
            return queryset.filter(quantity__lte=F('min_threshold'))
        return queryset.filter(quantity__gt=F('min_threshold'))


class StockMovementFilter(django_filters.FilterSet):
    stock_item = django_filters.NumberFilter(field_name='stock_item_id')
    movement_type = django_filters.ChoiceFilter(choices=StockMovement.MOVEMENT_TYPE_CHOICES)
    order = django_filters.NumberFilter(field_name='order_id')

    class Meta:
        model = StockMovement
        fields = ['stock_item', 'movement_type', 'order']
