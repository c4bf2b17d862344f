"""Default catalog values offered to a fresh installation"""
from .models import ProductConfig
import logging

logger = logging.getLogger(__name__)

DEFAULT_PRODUCT_CONFIG = {
    ProductConfig.TYPE_PRODUCT_TYPE: ['T-shirt', 'Jersey', 'Uniform', 'Polo Shirt', 'Hoodie'],
    ProductConfig.TYPE_COLOR: ['Navy Blue', 'Red', 'Black', 'White', 'Royal Blue', 'Green', 'Yellow'],
    ProductConfig.TYPE_SIZE: ['XS', 'S', 'M', 'L', 'XL', 'XXL', 'XXXL'],
    ProductConfig.TYPE_NECK_TYPE: ['Round Neck', 'V-Neck', 'Polo Collar', 'Henley', 'Crew Neck'],
}


def ensure_config_values(config_type, values):
    """
    Create the given values for one config type, skipping any value that
    already exists (case-insensitive). Returns the created rows.
    """
    existing = {
        value.lower()
        for value in ProductConfig.objects.filter(config_type=config_type).values_list('config_value', flat=True)
    }
    created = []
    for order, value in enumerate(values, start=1):
        if value.lower() in existing:
            continue
        created.append(ProductConfig.objects.create(
            config_type=config_type,
            config_value=value,
            display_order=order,
            is_active=True,
        ))
        existing.add(value.lower())
    return created


def load_default_product_config(defaults=None):
    defaults = DEFAULT_PRODUCT_CONFIG if defaults is None else defaults
    created = []
    for config_type, values in defaults.items():
        created.extend(ensure_config_values(config_type, values))
    logger.info(f"Loaded {len(created)} default product configuration values")
    return created
