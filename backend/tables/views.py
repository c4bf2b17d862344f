from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, parser_classes
from rest_framework.exceptions import NotFound, PermissionDenied
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from django.conf import settings
from django.db import transaction
from backend.core.exceptions import BadRequest
from backend.core.permissions import IsManager
from .filters import apply_filters, coerce_bool, resolve_column
from .registry import get_table
from pathlib import Path
import logging
import random
import time
import uuid

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 1000


def _int_param(value, default, name):
    if value in (None, ''):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        raise BadRequest(f"{name} must be a number")


def _check_write(request, table):
    if table.manager_writes and not IsManager().has_permission(request, None):
        raise PermissionDenied(IsManager.message)


def _row_payload(table, data):
    """Map a request row onto serializer fields; ID/id are dropped"""
    if not isinstance(data, dict):
        raise BadRequest('Request body must be an object')
    row = {}
    for key, value in data.items():
        if key in ('ID', 'id'):
            continue
        row[resolve_column(table, key).column] = value
    return row


def _record_id(data):
    record_id = data.get('ID') or data.get('id') if isinstance(data, dict) else None
    if not record_id:
        raise BadRequest('Record ID is required')
    return record_id


def _get_record(request, table, record_id):
    try:
        return table.queryset(request.user).get(pk=record_id)
    except (ValueError, TypeError):
        raise BadRequest('Record ID must be a number')
    except table.model.DoesNotExist:
        raise NotFound(f"Record {record_id} not found in {table.name}")


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def table_page(request, table_id):
    """
    Paged, filtered, ordered rows of one table.
    Body: {PageNo, PageSize, OrderByField, IsAsc, Filters: [{name, op, value}]}
    """
    table = get_table(table_id)
    body = request.data

    page_no = max(_int_param(body.get('PageNo'), 1, 'PageNo'), 1)
    page_size = min(max(_int_param(body.get('PageSize'), 10, 'PageSize'), 1), MAX_PAGE_SIZE)
    order_field = resolve_column(table, body.get('OrderByField') or 'id').attname
    is_asc = coerce_bool(body.get('IsAsc'), default=False)

    queryset = apply_filters(table.queryset(request.user), table, body.get('Filters'))
    total = queryset.count()

    ordering = order_field if is_asc else f"-{order_field}"
    offset = (page_no - 1) * page_size
    records = queryset.order_by(ordering, 'id' if is_asc else '-id')[offset:offset + page_size]

    serializer = table.serializer_class(records, many=True)
    rows = [{**row, 'ID': row['id']} for row in serializer.data]
    return Response({'data': {'List': rows, 'VirtualCount': total}})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def table_create(request, table_id):
    table = get_table(table_id)
    _check_write(request, table)

    serializer = table.serializer_class(data=_row_payload(table, request.data), context={'request': request})
    serializer.is_valid(raise_exception=True)
    with transaction.atomic():
        record = serializer.save()
    logger.info(f"{table.name}: created id={record.pk} by {request.user.email}")
    return Response({'success': True, 'insertId': record.pk})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def table_update(request, table_id):
    table = get_table(table_id)
    _check_write(request, table)

    record = _get_record(request, table, _record_id(request.data))
    serializer = table.serializer_class(
        record, data=_row_payload(table, request.data), partial=True, context={'request': request},
    )
    serializer.is_valid(raise_exception=True)
    with transaction.atomic():
        serializer.save()
    logger.info(f"{table.name}: updated id={record.pk} by {request.user.email}")
    return Response({'success': True, 'affectedRows': 1})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def table_delete(request, table_id):
    table = get_table(table_id)
    _check_write(request, table)

    record = _get_record(request, table, _record_id(request.data))
    record_id = record.pk
    with transaction.atomic():
        record.delete()
    logger.info(f"{table.name}: deleted id={record_id} by {request.user.email}")
    return Response({'success': True, 'affectedRows': 1})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
@parser_classes([MultiPartParser, FormParser])
def upload_file(request):
    """Store an attachment under UPLOAD_ROOT and return its public URL"""
    upload = request.FILES.get('file')
    if upload is None:
        raise BadRequest('No file uploaded')
    if upload.size > settings.MAX_UPLOAD_SIZE:
        raise BadRequest('File too large')

    extension = Path(upload.name).suffix.lower()
    if extension not in settings.ALLOWED_UPLOAD_EXTENSIONS:
        raise BadRequest('Invalid file type')

    upload_root = Path(settings.UPLOAD_ROOT)
    upload_root.mkdir(parents=True, exist_ok=True)
    stored_name = f"file-{int(time.time() * 1000)}-{random.randint(0, 10 ** 9)}{extension}"
    destination = upload_root / stored_name
    with open(destination, 'wb') as handle:
        for chunk in upload.chunks():
            handle.write(chunk)

    logger.info(f"Stored upload {upload.name} as {stored_name} ({upload.size} bytes)")
    return Response({
        'data': {
            'id': str(uuid.uuid4()),
            'filename': request.data.get('filename') or upload.name,
            'path': str(destination),
            'url': f"{settings.UPLOAD_URL}{stored_name}",
        }
    }, status=status.HTTP_200_OK)
