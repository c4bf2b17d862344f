from django.db import models
from django.db.models import Q
from django.utils import timezone
from decimal import Decimal
from backend.core.models import User
from backend.parties.models import Agent
import uuid


class OrderQuerySet(models.QuerySet):
    def visible_to(self, user):
        """Managers see every order; agents only their own"""
        if user.is_manager:
            return self
        return self.filter(Q(created_by=user) | Q(agent__user=user)).distinct()

    def open(self):
        return self.exclude(order_status__in=Order.CLOSED_STATUSES)


class Order(models.Model):
    """Customer order placed by an agent"""
    STATUS_PENDING = 'Pending'
    STATUS_CONFIRMED = 'Confirmed'
    STATUS_IN_PRODUCTION = 'In Production'
    STATUS_READY = 'Ready for Delivery'
    STATUS_SHIPPED = 'Shipped'
    STATUS_DELIVERED = 'Delivered'
    STATUS_CANCELLED = 'Cancelled'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_CONFIRMED, 'Confirmed'),
        (STATUS_IN_PRODUCTION, 'In Production'),
        (STATUS_READY, 'Ready for Delivery'),
        (STATUS_SHIPPED, 'Shipped'),
        (STATUS_DELIVERED, 'Delivered'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]
    CLOSED_STATUSES = (STATUS_DELIVERED, STATUS_CANCELLED)

    PAYMENT_PENDING = 'Pending'
    PAYMENT_PARTIAL = 'Partial'
    PAYMENT_COMPLETE = 'Complete'
    PAYMENT_STATUS_CHOICES = [
        (PAYMENT_PENDING, 'Pending'),
        (PAYMENT_PARTIAL, 'Partial'),
        (PAYMENT_COMPLETE, 'Complete'),
    ]

    TYPE_FROM_STOCK = 'From Stock'
    TYPE_CUSTOM = 'Custom Order'
    TYPE_MIXED = 'Mixed Order'
    ORDER_TYPE_CHOICES = [
        (TYPE_FROM_STOCK, 'From Stock'),
        (TYPE_CUSTOM, 'Custom Order'),
        (TYPE_MIXED, 'Mixed Order'),
    ]

    order_number = models.CharField(max_length=50, unique=True)
    agent = models.ForeignKey(Agent, on_delete=models.SET_NULL, null=True, blank=True, related_name='orders')
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, db_column='created_by', related_name='orders')
    customer_name = models.CharField(max_length=255)
    customer_phone = models.CharField(max_length=30, blank=True, default='')
    customer_whatsapp = models.CharField(max_length=30, blank=True, default='')
    customer_address = models.TextField(blank=True, null=True)
    # Product summary; multi-product orders list every variant in order_items
    product_type = models.CharField(max_length=100, blank=True, default='')
    product_color = models.CharField(max_length=50, blank=True, default='')
    neck_type = models.CharField(max_length=50, blank=True, default='')
    total_quantity = models.IntegerField(default=0)
    size_breakdown = models.JSONField(default=dict, blank=True, null=True)
    special_instructions = models.TextField(blank=True, null=True)
    file_upload = models.CharField(max_length=500, blank=True, default='')
    event_date = models.DateField(null=True, blank=True)
    delivery_date = models.DateField(null=True, blank=True)
    order_status = models.CharField(max_length=30, choices=STATUS_CHOICES, default=STATUS_PENDING)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    paid_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    payment_status = models.CharField(max_length=20, choices=PAYMENT_STATUS_CHOICES, default=PAYMENT_PENDING)
    order_type = models.CharField(max_length=20, choices=ORDER_TYPE_CHOICES, default=TYPE_CUSTOM)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = OrderQuerySet.as_manager()

    def __str__(self):
        return self.order_number

    @property
    def pending_amount(self):
        return max(self.total_amount - self.paid_amount, Decimal('0.00'))

    @staticmethod
    def generate_order_number():
        order_number = f"ORD-{timezone.now().strftime('%Y%m%d')}-{str(uuid.uuid4())[:8].upper()}"
        while Order.objects.filter(order_number=order_number).exists():
            order_number = f"ORD-{timezone.now().strftime('%Y%m%d')}-{str(uuid.uuid4())[:8].upper()}"
        return order_number

    def save(self, *args, **kwargs):
        if not self.order_number:
            self.order_number = Order.generate_order_number()
        super().save(*args, **kwargs)

    class Meta:
        managed = False
        db_table = 'orders'
        ordering = ['-created_at', '-id']


class OrderItem(models.Model):
    """One product variant (type / neck / color / size) of an order"""
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')
    product_type = models.CharField(max_length=100)
    neck_type = models.CharField(max_length=50, blank=True, default='')
    color = models.CharField(max_length=50)
    size = models.CharField(max_length=10)
    quantity = models.IntegerField()
    unit_price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    line_total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))

    def __str__(self):
        return f"{self.order_id}: {self.quantity} x {self.product_type} {self.color} {self.size}"

    def save(self, *args, **kwargs):
        self.line_total = Decimal(self.quantity) * Decimal(str(self.unit_price))
        super().save(*args, **kwargs)

    class Meta:
        managed = False
        db_table = 'order_items'
        ordering = ['id']
