from django.db import models
from django.utils import timezone


class ProductConfig(models.Model):
    """Admin-managed catalog values: product types, colors, sizes and neck types"""
    TYPE_PRODUCT_TYPE = 'product_type'
    TYPE_COLOR = 'color'
    TYPE_SIZE = 'size'
    TYPE_NECK_TYPE = 'neck_type'
    CONFIG_TYPE_CHOICES = [
        (TYPE_PRODUCT_TYPE, 'Product Type'),
        (TYPE_COLOR, 'Color'),
        (TYPE_SIZE, 'Size'),
        (TYPE_NECK_TYPE, 'Neck Type'),
    ]

    config_type = models.CharField(max_length=20, choices=CONFIG_TYPE_CHOICES)
    config_value = models.CharField(max_length=100)
    display_order = models.IntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_date = models.DateTimeField(default=timezone.now)

    def __str__(self):
        return f"{self.get_config_type_display()}: {self.config_value}"

    class Meta:
        managed = False
        db_table = 'product_config'
        ordering = ['config_type', 'display_order', 'config_value']
