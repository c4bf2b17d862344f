"""
API error handling

Every error leaves the API as {"error": message}; validation failures add a
"details" list. Registered as REST_FRAMEWORK['EXCEPTION_HANDLER'].
"""
from django.conf import settings
from django.db import IntegrityError
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler, set_rollback
import logging

logger = logging.getLogger(__name__)

DUPLICATE_KEY_MARKERS = (
    '23505',                      # PostgreSQL unique_violation
    '1062',                       # MySQL ER_DUP_ENTRY
    'unique constraint failed',   # SQLite
    'duplicate key',
    'duplicate entry',
)


class BadRequest(APIException):
    """400 carrying a single message instead of field details"""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Bad request.'
    default_code = 'bad_request'


class Conflict(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Duplicate entry'
    default_code = 'conflict'


def flatten_validation_errors(detail, field=None):
    """
    Turn DRF's nested error structure into a flat list of
    {"field": ..., "message": ...} entries.
    """
    errors = []
    if isinstance(detail, dict):
        for key, value in detail.items():
            if key == 'non_field_errors':
                nested_field = field
            else:
                nested_field = f"{field}.{key}" if field else str(key)
            errors.extend(flatten_validation_errors(value, nested_field))
    elif isinstance(detail, list):
        for index, value in enumerate(detail):
            if isinstance(value, (dict, list)):
                errors.extend(flatten_validation_errors(value, f"{field}[{index}]" if field else str(index)))
            else:
                errors.extend(flatten_validation_errors(value, field))
    else:
        errors.append({'field': field, 'message': str(detail)})
    return errors


def is_duplicate_key_error(exc):
    cause = getattr(exc, '__cause__', None) or exc
    codes = [str(arg) for arg in getattr(cause, 'args', ())]
    pgcode = getattr(cause, 'pgcode', None)
    if pgcode:
        codes.append(pgcode)
    haystack = ' '.join(codes + [str(exc)]).lower()
    return any(marker in haystack for marker in DUPLICATE_KEY_MARKERS)


def api_exception_handler(exc, context):
    """Shape every API error as {"error": ...}"""
    response = exception_handler(exc, context)

    if response is not None:
        if isinstance(exc, ValidationError):
            response.data = {
                'error': 'Validation failed',
                'details': flatten_validation_errors(exc.detail),
            }
        else:
            detail = getattr(exc, 'detail', None)
            if isinstance(detail, dict):
                message = detail.get('detail') or detail.get('error') or str(detail)
            elif detail is not None:
                message = str(detail)
            else:
                message = response.data.get('detail', 'Request failed')
            response.data = {'error': str(message)}
        return response

    set_rollback()

    if isinstance(exc, IntegrityError):
        if is_duplicate_key_error(exc):
            logger.info(f"Duplicate entry rejected: {exc}")
            return Response({'error': 'Duplicate entry'}, status=status.HTTP_409_CONFLICT)
        logger.warning(f"Integrity error: {exc}")
        return Response({'error': 'Invalid reference or constraint violation'}, status=status.HTTP_400_BAD_REQUEST)

    view = context.get('view')
    logger.exception(f"Unhandled error in {view.__class__.__name__ if view else 'API'}: {exc}")
    message = str(exc) if settings.DEBUG else 'Internal server error'
    return Response({'error': message}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
