"""
Order composition rules

Pure functions for multi-product orders: derived quantities and totals,
size breakdown handling and payment status. A product is a dict shaped like
the order form payload:

    {
        'product_type': 'T-shirt',
        'neck_type': 'Round Neck',
        'unit_price': Decimal('350.00'),
        'variants': [{'size': 'M', 'color': 'Red', 'quantity': 10}, ...],
    }
"""
from decimal import Decimal

# Remaining stock at or below this margin is flagged as low
LOW_STOCK_MARGIN = 5

STOCK_OK = 'sufficient'
STOCK_LOW = 'low'
STOCK_INSUFFICIENT = 'insufficient'
STOCK_UNKNOWN = 'unknown'


def _quantity(value) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def product_quantity(product) -> int:
    """Sum of the positive variant quantities of one product"""
    return sum(q for q in (_quantity(v.get('quantity')) for v in product.get('variants', [])) if q > 0)


def item_total(product) -> Decimal:
    return Decimal(product_quantity(product)) * Decimal(str(product.get('unit_price') or 0))


def order_totals(products):
    """Total quantity and amount over every product of an order"""
    total_quantity = sum(product_quantity(p) for p in products)
    total_amount = sum((item_total(p) for p in products), Decimal('0.00'))
    return {'total_quantity': total_quantity, 'total_amount': total_amount}


def is_valid_variant(variant) -> bool:
    return bool(variant.get('size')) and bool(variant.get('color')) and _quantity(variant.get('quantity')) > 0


def is_valid_product(product) -> bool:
    """A product needs a type and at least one complete variant"""
    return bool(product.get('product_type')) and any(is_valid_variant(v) for v in product.get('variants', []))


def merge_size_breakdown(products):
    """Combined quantity per size across every variant of every product"""
    breakdown = {}
    for product in products:
        for variant in product.get('variants', []):
            quantity = _quantity(variant.get('quantity'))
            if quantity > 0 and variant.get('size'):
                breakdown[variant['size']] = breakdown.get(variant['size'], 0) + quantity
    return breakdown


def distinct_values(products, key):
    """Ordered distinct variant values (e.g. colors) across products"""
    seen = []
    for product in products:
        for variant in product.get('variants', []):
            value = variant.get(key)
            if value and value not in seen:
                seen.append(value)
    return seen


def auto_distribute(total: int, sizes):
    """
    Spread `total` evenly over `sizes`; the first total % len(sizes) sizes
    get one extra unit.
    """
    sizes = list(sizes)
    if not sizes or total <= 0:
        return {}
    base, remainder = divmod(total, len(sizes))
    return {size: base + (1 if index < remainder else 0) for index, size in enumerate(sizes)}


def breakdown_total(size_breakdown) -> int:
    return sum(_quantity(q) for q in size_breakdown.values())


def validate_size_breakdown(size_breakdown, total_quantity, available_stock=None):
    """
    Check a size breakdown against the order total and, optionally, stock on
    hand. Returns {size or 'total': message}; empty means valid.
    """
    errors = {}
    for size, quantity in size_breakdown.items():
        quantity = _quantity(quantity)
        if quantity < 0:
            errors[size] = 'Quantity cannot be negative'
        elif available_stock is not None and size in available_stock and quantity > available_stock[size]:
            errors[size] = f'Only {available_stock[size]} available in stock'

    current = breakdown_total(size_breakdown)
    if current > total_quantity:
        errors['total'] = f'Size total ({current}) exceeds order quantity ({total_quantity})'
    elif current < total_quantity:
        errors['total'] = f'Size total ({current}) is less than order quantity ({total_quantity})'
    return errors


def stock_status(requested: int, available) -> str:
    if available is None:
        return STOCK_UNKNOWN
    if requested > available:
        return STOCK_INSUFFICIENT
    if available - requested <= LOW_STOCK_MARGIN:
        return STOCK_LOW
    return STOCK_OK


def payment_status(amount, paid) -> str:
    amount = Decimal(str(amount or 0))
    paid = Decimal(str(paid or 0))
    if paid <= 0:
        return 'Pending'
    if paid >= amount:
        return 'Complete'
    return 'Partial'


def pending_amount(amount, paid) -> Decimal:
    return Decimal(str(amount or 0)) - Decimal(str(paid or 0))
