from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.core.cache import cache
from backend.core.cache_utils import PRODUCT_CONFIG_CACHE_KEY, PRODUCT_CONFIG_CACHE_TTL
from backend.core.permissions import IsManager
from .defaults import load_default_product_config
from .models import ProductConfig
from .serializers import ProductConfigSerializer
import logging

logger = logging.getLogger(__name__)

GROUP_KEYS = {
    ProductConfig.TYPE_PRODUCT_TYPE: 'productTypes',
    ProductConfig.TYPE_COLOR: 'colors',
    ProductConfig.TYPE_SIZE: 'sizes',
    ProductConfig.TYPE_NECK_TYPE: 'neckTypes',
}


def grouped_product_config():
    """Active catalog values grouped by type, in display order"""
    grouped = cache.get(PRODUCT_CONFIG_CACHE_KEY)
    if grouped is not None:
        return grouped

    grouped = {key: [] for key in GROUP_KEYS.values()}
    configs = ProductConfig.objects.filter(is_active=True).order_by('config_type', 'display_order', 'config_value')
    for config in configs:
        grouped[GROUP_KEYS[config.config_type]].append(config.config_value)

    cache.set(PRODUCT_CONFIG_CACHE_KEY, grouped, PRODUCT_CONFIG_CACHE_TTL)
    return grouped


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def product_config_grouped(request):
    """Values for the order form dropdowns"""
    return Response(grouped_product_config())


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def product_config_list(request):
    """All configuration rows, optionally filtered by type and active flag"""
    queryset = ProductConfig.objects.all()
    config_type = request.query_params.get('config_type')
    active = request.query_params.get('active')

    if config_type:
        queryset = queryset.filter(config_type=config_type)
    if active is not None:
        queryset = queryset.filter(is_active=active.lower() in ('1', 'true', 'yes'))

    serializer = ProductConfigSerializer(queryset, many=True)
    return Response(serializer.data)


@api_view(['POST'])
@permission_classes([IsManager])
def product_config_defaults(request):
    """Insert the default catalog, skipping values that already exist"""
    created = load_default_product_config()
    logger.info(f"{request.user.email} initialized {len(created)} default configuration values")
    return Response({
        'success': True,
        'created': len(created),
        'data': ProductConfigSerializer(created, many=True).data,
    }, status=status.HTTP_201_CREATED if created else status.HTTP_200_OK)
