"""Initial catalog and empty stock grid for a new installation"""
from django.db import transaction
from backend.catalog.defaults import ensure_config_values
from backend.catalog.models import ProductConfig
from backend.core.cache_signals import suspend_cache_signals
from backend.core.cache_utils import invalidate_product_config_cache, invalidate_reports_cache
from backend.inventory.models import StockItem
import logging

logger = logging.getLogger(__name__)

SEED_PRODUCT_TYPES = ['T-shirt', 'Jersey', 'Polo Shirt', 'Hoodie']
SEED_COLORS = ['White', 'Black', 'Red', 'Blue', 'Green', 'Yellow', 'Navy', 'Gray']
SEED_SIZES = ['XS', 'S', 'M', 'L', 'XL', 'XXL', 'XXXL']
SEED_MIN_THRESHOLD = 10


@transaction.atomic
def seed_initial_data():
    """
    Product types, colors and sizes plus a zero-quantity stock item for every
    type x color x size. Existing rows are left alone, so this is safe to re-run.
    """
    with suspend_cache_signals():
        config_rows = []
        config_rows += ensure_config_values(ProductConfig.TYPE_PRODUCT_TYPE, SEED_PRODUCT_TYPES)
        config_rows += ensure_config_values(ProductConfig.TYPE_COLOR, SEED_COLORS)
        config_rows += ensure_config_values(ProductConfig.TYPE_SIZE, SEED_SIZES)

        existing = set(StockItem.objects.filter(neck_type='').values_list('product_type', 'color', 'size'))
        new_items = [
            StockItem(product_type=product_type, color=color, size=size, neck_type='',
                      quantity=0, min_threshold=SEED_MIN_THRESHOLD)
            for product_type in SEED_PRODUCT_TYPES
            for color in SEED_COLORS
            for size in SEED_SIZES
            if (product_type, color, size) not in existing
        ]
        StockItem.objects.bulk_create(new_items)

    invalidate_product_config_cache()
    invalidate_reports_cache()
    logger.info(f"Seeded {len(config_rows)} configuration values and {len(new_items)} stock items")
    return {'config_values': len(config_rows), 'stock_items': len(new_items)}
