"""
Cache invalidation signals
Automatically invalidate cache when data changes
"""
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
import logging
import threading
from contextlib import contextmanager

from backend.catalog.models import ProductConfig
from backend.inventory.models import StockItem
from backend.orders.models import Order, OrderItem
from backend.parties.models import Agent
from .cache_utils import invalidate_product_config_cache, invalidate_reports_cache

logger = logging.getLogger(__name__)

# Thread-local storage to track signal suspension
_thread_locals = threading.local()


@contextmanager
def suspend_cache_signals():
    """
    Temporarily suspend cache invalidation signals for bulk operations.
    Invalidate manually after the block.
    """
    try:
        _thread_locals.suspended = True
        yield
    finally:
        _thread_locals.suspended = False


def is_suspended():
    return getattr(_thread_locals, 'suspended', False)


@receiver([post_save, post_delete], sender=ProductConfig)
def invalidate_product_config(sender, instance, **kwargs):
    if is_suspended():
        return
    invalidate_product_config_cache()


@receiver([post_save, post_delete], sender=Order)
@receiver([post_save, post_delete], sender=OrderItem)
@receiver([post_save, post_delete], sender=StockItem)
@receiver([post_save, post_delete], sender=Agent)
def invalidate_reports(sender, instance, **kwargs):
    if is_suspended():
        return
    logger.debug(f"{sender.__name__} {instance.pk} changed, invalidating report caches")
    invalidate_reports_cache()
