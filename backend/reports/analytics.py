"""
Order and sales aggregates behind the reports endpoints.

All functions return plain dicts/lists of floats and ints so they can be
cached and rendered as JSON or CSV without further conversion.
"""
from django.db.models import Avg, Count, Q, Sum
from django.db.models.functions import Coalesce
from django.utils import timezone
from datetime import date
from decimal import Decimal
from backend.core.cache_utils import cached_query, REPORTS_CACHE_TTL, REPORTS_CACHE_PREFIX
from backend.inventory.models import StockItem
from backend.orders.models import Order
from backend.parties.models import Agent
import calendar

ZERO = Decimal('0.00')
PENDING_ORDER_STATUSES = (Order.STATUS_PENDING, Order.STATUS_IN_PRODUCTION)
MONTHS_IN_REPORT = 12


def _money(value):
    return float(round(value or ZERO, 2))


def _percent(part, whole):
    if not whole:
        return 0.0
    return round(float(part) / float(whole) * 100, 2)


def _orders(agent_id=None):
    orders = Order.objects.all()
    if agent_id is not None:
        orders = orders.filter(agent_id=agent_id)
    return orders


def _month_starts(today, count=MONTHS_IN_REPORT):
    """First day of the last `count` months, oldest first, current month last"""
    months = []
    year, month = today.year, today.month
    for _ in range(count):
        months.append(date(year, month, 1))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(months))


@cached_query(cache_ttl=REPORTS_CACHE_TTL, key_prefix=REPORTS_CACHE_PREFIX)
def sales_analytics(agent_id=None):
    orders = _orders(agent_id)
    totals = orders.aggregate(
        total_orders=Count('id'),
        total_revenue=Coalesce(Sum('total_amount'), ZERO),
        pending_orders=Count('id', filter=Q(order_status__in=PENDING_ORDER_STATUSES)),
        completed_orders=Count('id', filter=Q(order_status=Order.STATUS_DELIVERED)),
    )
    total_orders = totals['total_orders']
    total_revenue = totals['total_revenue']
    return {
        'totalOrders': total_orders,
        'totalRevenue': _money(total_revenue),
        'pendingOrders': totals['pending_orders'],
        'completedOrders': totals['completed_orders'],
        'averageOrderValue': _money(total_revenue / total_orders) if total_orders else 0.0,
    }


@cached_query(cache_ttl=REPORTS_CACHE_TTL, key_prefix=REPORTS_CACHE_PREFIX)
def agent_performance():
    agents = Agent.objects.annotate(
        total_sales=Coalesce(Sum('orders__total_amount'), ZERO),
        orders_count=Count('orders'),
    ).order_by('first_name', 'last_name')

    performance = []
    for agent in agents:
        performance.append({
            'agentId': agent.id,
            'agentName': agent.full_name,
            'agentCode': agent.agent_code,
            'totalSales': _money(agent.total_sales),
            'ordersCount': agent.orders_count,
            'target': _money(agent.target_sales),
            'achievement': _percent(agent.total_sales, agent.target_sales),
            'commission': _money(agent.total_sales * agent.commission_rate / 100),
        })
    return performance


@cached_query(cache_ttl=REPORTS_CACHE_TTL, key_prefix=REPORTS_CACHE_PREFIX)
def sales_by_month(today=None):
    """Revenue per delivery month for the last twelve months, zero-filled"""
    today = today or timezone.localdate()
    months = _month_starts(today)
    start = months[0]
    end = date(today.year, today.month, calendar.monthrange(today.year, today.month)[1])

    buckets = {month: {'revenue': ZERO, 'orders': 0} for month in months}
    rows = Order.objects.filter(delivery_date__gte=start, delivery_date__lte=end).values_list('delivery_date', 'total_amount')
    for delivery_date, total_amount in rows:
        bucket = buckets[delivery_date.replace(day=1)]
        bucket['revenue'] += total_amount
        bucket['orders'] += 1

    result = []
    for month in months:
        bucket = buckets[month]
        result.append({
            'month': month.strftime('%b %Y'),
            'revenue': _money(bucket['revenue']),
            'orders': bucket['orders'],
            'averageOrderValue': _money(bucket['revenue'] / bucket['orders']) if bucket['orders'] else 0.0,
        })
    return result


def average_costs():
    """Mean cost_per_unit of stock items per product type, ignoring zero costs"""
    rows = StockItem.objects.filter(cost_per_unit__gt=0).values('product_type').annotate(avg_cost=Avg('cost_per_unit'))
    return {row['product_type']: Decimal(row['avg_cost']) for row in rows}


@cached_query(cache_ttl=REPORTS_CACHE_TTL, key_prefix=REPORTS_CACHE_PREFIX)
def product_analysis():
    costs = average_costs()
    rows = Order.objects.values('product_type').annotate(
        total_sold=Coalesce(Sum('total_quantity'), 0),
        revenue=Coalesce(Sum('total_amount'), ZERO),
    ).order_by('-revenue')

    analysis = []
    for row in rows:
        average_price = row['revenue'] / row['total_sold'] if row['total_sold'] else ZERO
        cost = costs.get(row['product_type'], ZERO)
        margin = _percent(average_price - cost, average_price) if average_price > 0 and cost > 0 else 0.0
        analysis.append({
            'productType': row['product_type'],
            'totalSold': row['total_sold'],
            'revenue': _money(row['revenue']),
            'averagePrice': _money(average_price),
            'profitMargin': margin,
        })
    return analysis


@cached_query(cache_ttl=REPORTS_CACHE_TTL, key_prefix=REPORTS_CACHE_PREFIX)
def revenue_metrics():
    orders = Order.objects.all()
    totals = orders.aggregate(
        total_orders=Count('id'),
        total_revenue=Coalesce(Sum('total_amount'), ZERO),
        completed_payments=Coalesce(Sum('paid_amount', filter=Q(payment_status=Order.PAYMENT_COMPLETE)), ZERO),
    )
    open_payments = orders.filter(payment_status__in=[Order.PAYMENT_PENDING, Order.PAYMENT_PARTIAL])
    pending_payments = sum((o.total_amount - o.paid_amount for o in open_payments.only('total_amount', 'paid_amount')), ZERO)

    costs = average_costs()
    total_cost = ZERO
    for product_type, quantity in orders.values_list('product_type', 'total_quantity'):
        total_cost += costs.get(product_type, ZERO) * quantity

    total_revenue = totals['total_revenue']
    total_orders = totals['total_orders']
    return {
        'totalRevenue': _money(total_revenue),
        'totalOrders': total_orders,
        'averageOrderValue': _money(total_revenue / total_orders) if total_orders else 0.0,
        'pendingPayments': _money(pending_payments),
        'completedPayments': _money(totals['completed_payments']),
        'profitMargin': _percent(total_revenue - total_cost, total_revenue),
    }


def report_summary():
    return {
        'agentPerformance': agent_performance(),
        'salesByMonth': sales_by_month(),
        'productAnalysis': product_analysis(),
        'revenueMetrics': revenue_metrics(),
    }
