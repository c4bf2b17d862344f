import csv
import logging
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.http import HttpResponse
from django.utils import timezone

from backend.core.exceptions import BadRequest
from backend.core.permissions import IsManager
from backend.inventory.models import low_stock_items
from backend.inventory.serializers import StockItemSerializer
from backend.orders.models import Order
from backend.orders.serializers import OrderSerializer
from backend.parties.models import Agent
from . import analytics

logger = logging.getLogger('backend.reports')

DASHBOARD_LIST_SIZE = 5

EXPORTS = {
    'agent-performance': (
        analytics.agent_performance,
        ['agentCode', 'agentName', 'ordersCount', 'totalSales', 'target', 'achievement', 'commission'],
    ),
    'sales-by-month': (
        analytics.sales_by_month,
        ['month', 'orders', 'revenue', 'averageOrderValue'],
    ),
    'product-analysis': (
        analytics.product_analysis,
        ['productType', 'totalSold', 'revenue', 'averagePrice', 'profitMargin'],
    ),
}


def _agent_scope(request):
    """
    Agent id whose numbers the caller may see: agents are pinned to their own
    profile, managers may pass ?agent=<id> or see everything.
    """
    user = request.user
    if not user.is_manager:
        agent = Agent.objects.filter(user=user).first()
        # An agent login without a profile has no orders of its own
        return agent.id if agent else 0

    agent_id = request.query_params.get('agent')
    if agent_id in (None, ''):
        return None
    try:
        return int(agent_id)
    except ValueError:
        raise BadRequest('agent must be a number')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def sales_analytics(request):
    """Order counts and revenue for the dashboard cards"""
    return Response(analytics.sales_analytics(_agent_scope(request)))


@api_view(['GET'])
@permission_classes([IsManager])
def report_summary(request):
    """Agent performance, monthly sales, product analysis and revenue metrics"""
    return Response(analytics.report_summary())


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dashboard(request):
    agent_id = _agent_scope(request)
    today = timezone.localdate()

    upcoming = Order.objects.visible_to(request.user).open().filter(delivery_date__gte=today)
    # Agents are already limited to their own orders
    if agent_id is not None and request.user.is_manager:
        upcoming = upcoming.filter(agent_id=agent_id)
    upcoming = upcoming.select_related('agent').order_by('delivery_date', 'id')[:DASHBOARD_LIST_SIZE]

    return Response({
        'analytics': analytics.sales_analytics(agent_id),
        'lowStock': StockItemSerializer(low_stock_items()[:DASHBOARD_LIST_SIZE], many=True).data,
        'upcomingDeliveries': OrderSerializer(upcoming, many=True).data,
    })


@api_view(['GET'])
@permission_classes([IsManager])
def export_report(request, report):
    """CSV download of one report table"""
    if report not in EXPORTS:
        raise BadRequest(f"Unknown report: {report}")
    build, columns = EXPORTS[report]

    response = HttpResponse(content_type='text/csv')
    filename = f"{report}-{timezone.localdate().isoformat()}.csv"
    response['Content-Disposition'] = f'attachment; filename="{filename}"'

    writer = csv.DictWriter(response, fieldnames=columns, extrasaction='ignore')
    writer.writeheader()
    rows = build()
    writer.writerows(rows)
    logger.info(f"Exported {report} ({len(rows)} rows) for {request.user.email}")
    return response
