from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from backend.core.permissions import IsManager
from .filters import StockItemFilter, StockMovementFilter
from .models import StockItem, StockMovement, low_stock_items
from .serializers import (
    StockItemSerializer, StockMovementSerializer,
    StockAvailabilitySerializer, StockAdjustSerializer,
)
from .services import adjust_stock, available_by_size, check_availability


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def stock_list(request):
    """List stock items with optional filtering"""
    filterset = StockItemFilter(request.query_params, queryset=StockItem.objects.all())
    if not filterset.is_valid():
        return Response({'error': 'Invalid filters', 'details': filterset.errors}, status=status.HTTP_400_BAD_REQUEST)
    serializer = StockItemSerializer(filterset.qs, many=True)
    return Response(serializer.data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def stock_detail(request, pk):
    stock_item = get_object_or_404(StockItem, pk=pk)
    return Response(StockItemSerializer(stock_item).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def stock_low(request):
    """Items at or below their minimum threshold"""
    serializer = StockItemSerializer(low_stock_items(), many=True)
    return Response(serializer.data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def stock_availability(request):
    """
    Check a size breakdown against stock.
    Response: {available, shortfall, on_hand}
    """
    serializer = StockAvailabilitySerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    result = check_availability(
        data['product_type'], data['color'], data['size_breakdown'], neck_type=data['neck_type'] or None,
    )
    result['on_hand'] = available_by_size(
        data['product_type'], data['color'], data['size_breakdown'].keys(), neck_type=data['neck_type'] or None,
    )
    return Response(result)


@api_view(['POST'])
@permission_classes([IsManager])
def stock_adjust(request):
    """Increase or reduce a stock item; reductions stop at zero"""
    serializer = StockAdjustSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    item = adjust_stock(
        data['stock_item'], data['operation'], data['quantity'], data['reason'], user=request.user,
    )
    return Response(StockItemSerializer(item).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def stock_movement_list(request):
    """Stock movements, newest first"""
    filterset = StockMovementFilter(request.query_params, queryset=StockMovement.objects.with_item())
    if not filterset.is_valid():
        return Response({'error': 'Invalid filters', 'details': filterset.errors}, status=status.HTTP_400_BAD_REQUEST)
    try:
        limit = max(1, min(int(request.query_params.get('limit', 100)), 1000))
    except ValueError:
        limit = 100
    serializer = StockMovementSerializer(filterset.qs[:limit], many=True)
    return Response(serializer.data)
