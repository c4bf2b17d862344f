"""
Stock availability and stock movement bookkeeping

Stock rows are matched on product type, color and size (case-insensitive).
When a neck type is requested, rows with that neck type and rows with no neck
type both count.
"""
from django.db import transaction
from django.db.models import Q, Sum
from .models import StockItem, StockMovement
import logging

logger = logging.getLogger(__name__)


def matching_stock(product_type, color, size=None, neck_type=None):
    queryset = StockItem.objects.filter(product_type__iexact=product_type, color__iexact=color)
    if size:
        queryset = queryset.filter(size__iexact=size)
    if neck_type:
        queryset = queryset.filter(Q(neck_type__iexact=neck_type) | Q(neck_type=''))
    return queryset


def available_quantity(product_type, color, size, neck_type=None):
    total = matching_stock(product_type, color, size, neck_type).aggregate(total=Sum('quantity'))['total']
    return int(total or 0)


def available_by_size(product_type, color, sizes, neck_type=None):
    """Map each size to the quantity on hand"""
    return {size: available_quantity(product_type, color, size, neck_type) for size in sizes}


def check_availability(product_type, color, size_breakdown, neck_type=None):
    """
    Compare a size breakdown against stock.
    Returns {'available': bool, 'shortfall': {size: missing quantity}}.
    """
    shortfall = {}
    for size, requested in size_breakdown.items():
        requested = int(requested or 0)
        if requested <= 0:
            continue
        on_hand = available_quantity(product_type, color, size, neck_type)
        if on_hand < requested:
            shortfall[size] = requested - on_hand
    return {'available': not shortfall, 'shortfall': shortfall}


def stock_shortfall(product_type, color, size, demand):
    """
    Combined demand for one product type, color and size against stock.
    `demand` maps a lower-cased neck type ('' for any) to quantity. Rows with a
    neck type serve that neck only; rows without one are shared by every line.
    Returns the quantity that cannot be covered.
    """
    shared = 0
    by_neck = {}
    for neck, quantity in matching_stock(product_type, color, size).values_list('neck_type', 'quantity'):
        if neck:
            by_neck[neck.lower()] = by_neck.get(neck.lower(), 0) + quantity
        else:
            shared += quantity

    missing = 0
    for neck, requested in demand.items():
        if not neck:
            continue
        own = min(by_neck.get(neck, 0), requested)
        by_neck[neck] = by_neck.get(neck, 0) - own
        borrowed = min(shared, requested - own)
        shared -= borrowed
        missing += requested - own - borrowed

    missing += max(0, demand.get('', 0) - shared - sum(by_neck.values()))
    return missing


def record_movement(stock_item, movement_type, quantity, reason='', order=None, user=None):
    return StockMovement.objects.create(
        stock_item=stock_item,
        movement_type=movement_type,
        quantity=quantity,
        reason=reason,
        order=order,
        user=user if user is not None and user.is_authenticated else None,
    )


@transaction.atomic
def reduce_stock(product_type, color, size, quantity, neck_type=None, order=None, user=None,
                 reason='Order fulfillment'):
    """
    Deduct `quantity` from the matching rows, oldest first, never going below
    zero. Rows of the requested neck type go before shared rows without one.
    Returns the quantity actually deducted.
    """
    remaining = int(quantity)
    rows = list(matching_stock(product_type, color, size, neck_type).select_for_update().order_by('id'))
    if neck_type:
        rows.sort(key=lambda item: item.neck_type == '')
    for item in rows:
        if remaining <= 0:
            break
        take = min(item.quantity, remaining)
        if take <= 0:
            continue
        item.quantity -= take
        item.save(update_fields=['quantity', 'updated_at'])
        record_movement(item, StockMovement.TYPE_OUT, take, reason, order=order, user=user)
        remaining -= take

    deducted = int(quantity) - remaining
    if remaining > 0:
        logger.warning(
            f"Stock short by {remaining} for {product_type}/{color}/{neck_type or '-'}/{size}"
        )
    return deducted


@transaction.atomic
def adjust_stock(stock_item, operation, quantity, reason='', user=None):
    """
    Increase or reduce one stock row. Reductions stop at zero.
    Returns the refreshed stock item.
    """
    item = StockItem.objects.select_for_update().get(pk=stock_item.pk)
    quantity = int(quantity)

    if operation == 'increase':
        item.quantity += quantity
        item.save(update_fields=['quantity', 'updated_at'])
        record_movement(item, StockMovement.TYPE_IN, quantity, reason or 'Stock replenishment', user=user)
    elif operation == 'reduce':
        reduced = min(item.quantity, quantity)
        item.quantity -= reduced
        item.save(update_fields=['quantity', 'updated_at'])
        if reduced:
            record_movement(item, StockMovement.TYPE_OUT, reduced, reason or 'Stock reduction', user=user)
    else:
        raise ValueError(f"Unknown stock operation: {operation}")

    logger.info(f"Stock {operation} of {quantity} on item {item.pk}, now {item.quantity}")
    return item
