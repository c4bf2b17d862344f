from django.db import models
from django.db.models import F
from decimal import Decimal


class StockItem(models.Model):
    """Stock on hand for one product type / color / neck type / size"""
    product_type = models.CharField(max_length=100)
    color = models.CharField(max_length=50)
    # Blank means the stock is not tied to a neck type
    neck_type = models.CharField(max_length=50, blank=True, default='')
    size = models.CharField(max_length=10)
    quantity = models.IntegerField(default=0)
    min_threshold = models.IntegerField(default=10)
    cost_per_unit = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    selling_price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    batch_number = models.CharField(max_length=50, blank=True, default='')
    supplier = models.CharField(max_length=255, blank=True, default='')
    purchase_date = models.DateField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        neck = f" {self.neck_type}" if self.neck_type else ''
        return f"{self.product_type} {self.color}{neck} {self.size} ({self.quantity})"

    @property
    def is_low(self):
        return self.quantity <= self.min_threshold

    class Meta:
        managed = False
        db_table = 'stock_items'
        ordering = ['product_type', 'color', 'size']


class StockMovementQuerySet(models.QuerySet):
    def with_item(self):
        return self.select_related('stock_item', 'order', 'user')


class StockMovement(models.Model):
    """Every quantity change on a stock item"""
    TYPE_IN = 'in'
    TYPE_OUT = 'out'
    TYPE_ADJUSTMENT = 'adjustment'
    MOVEMENT_TYPE_CHOICES = [
        (TYPE_IN, 'Stock In'),
        (TYPE_OUT, 'Stock Out'),
        (TYPE_ADJUSTMENT, 'Adjustment'),
    ]

    stock_item = models.ForeignKey(StockItem, on_delete=models.CASCADE, related_name='movements')
    movement_type = models.CharField(max_length=20, choices=MOVEMENT_TYPE_CHOICES)
    quantity = models.IntegerField()
    reason = models.CharField(max_length=255, blank=True, default='')
    order = models.ForeignKey('orders.Order', on_delete=models.SET_NULL, null=True, blank=True, related_name='stock_movements')
    user = models.ForeignKey('core.User', on_delete=models.SET_NULL, null=True, blank=True, related_name='stock_movements')
    created_at = models.DateTimeField(auto_now_add=True)

    objects = StockMovementQuerySet.as_manager()

    def __str__(self):
        return f"{self.get_movement_type_display()} {self.quantity} x {self.stock_item_id}"

    class Meta:
        managed = False
        db_table = 'stock_movements'
        ordering = ['-created_at', '-id']


def low_stock_items():
    return StockItem.objects.filter(quantity__lte=F('min_threshold')).order_by('quantity', 'product_type')
