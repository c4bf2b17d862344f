from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from django.db.models import Q
from django.utils import timezone
from datetime import timedelta
from backend.core.exceptions import BadRequest
from backend.core.permissions import IsManager
from .filters import OrderFilter
from .models import Order
from .serializers import (
    OrderSerializer, OrderDetailSerializer, OrderCreateSerializer,
    OrderUpdateSerializer, OrderStatusSerializer,
)
import logging

logger = logging.getLogger(__name__)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def order_list_create(request):
    """List visible orders or place a new multi-product order"""
    if request.method == 'GET':
        queryset = Order.objects.visible_to(request.user).select_related('agent')
        filterset = OrderFilter(request.query_params, queryset=queryset)
        if not filterset.is_valid():
            return Response({'error': 'Invalid filters', 'details': filterset.errors}, status=status.HTTP_400_BAD_REQUEST)
        serializer = OrderSerializer(filterset.qs, many=True)
        return Response(serializer.data)

    serializer = OrderCreateSerializer(data=request.data, context={'request': request})
    serializer.is_valid(raise_exception=True)
    order = serializer.save()
    return Response({
        'success': True,
        'data': OrderDetailSerializer(order).data,
    }, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def order_detail(request, pk):
    """Retrieve an order with its items; managers may update or delete it"""
    order = get_object_or_404(Order.objects.visible_to(request.user).prefetch_related('items'), pk=pk)

    if request.method == 'GET':
        return Response(OrderDetailSerializer(order).data)

    if not IsManager().has_permission(request, None):
        return Response({'error': IsManager.message}, status=status.HTTP_403_FORBIDDEN)

    if request.method == 'PATCH':
        serializer = OrderUpdateSerializer(order, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        logger.info(f"Order {order.order_number} updated by {request.user.email}: {sorted(request.data.keys())}")
        return Response(OrderDetailSerializer(order).data)

    order_number = order.order_number
    order.delete()
    logger.info(f"Order {order_number} deleted by {request.user.email}")
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def order_status_update(request, pk):
    """Move an order through the delivery workflow"""
    order = get_object_or_404(Order.objects.visible_to(request.user), pk=pk)
    serializer = OrderStatusSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    previous = order.order_status
    order.order_status = serializer.validated_data['order_status']
    order.save(update_fields=['order_status', 'updated_at'])
    logger.info(f"Order {order.order_number}: {previous} -> {order.order_status}")
    return Response({'success': True, 'data': OrderSerializer(order).data})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_duplicates(request):
    """
    Possible duplicates of a new order: same customer (case-insensitive),
    product type and event date, excluding cancelled orders.
    """
    customer_name = request.query_params.get('customer_name', '').strip()
    product_type = request.query_params.get('product_type', '').strip()
    event_date = request.query_params.get('event_date', '').strip()
    if not (customer_name and product_type and event_date):
        raise BadRequest('customer_name, product_type and event_date are required')

    queryset = Order.objects.visible_to(request.user).filter(
        customer_name__iexact=customer_name,
        event_date=event_date,
    ).exclude(order_status=Order.STATUS_CANCELLED)
    queryset = queryset.filter(Q(product_type__iexact=product_type) | Q(items__product_type__iexact=product_type))

    serializer = OrderSerializer(queryset.distinct(), many=True)
    return Response({'duplicates': serializer.data, 'count': len(serializer.data)})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_upcoming(request):
    """Open orders due for delivery within the next `days` days (default 7)"""
    try:
        days = int(request.query_params.get('days', 7))
    except ValueError:
        raise BadRequest('days must be a number')

    today = timezone.localdate()
    queryset = Order.objects.visible_to(request.user).open().filter(
        delivery_date__gte=today,
        delivery_date__lte=today + timedelta(days=days),
    ).order_by('delivery_date', 'id')

    serializer = OrderSerializer(queryset, many=True)
    return Response(serializer.data)
