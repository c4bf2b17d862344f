from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.models import BooleanField, Q
from backend.core.exceptions import BadRequest
import logging

logger = logging.getLogger(__name__)

OPERATORS = {
    'Equal': 'exact',
    'GreaterThan': 'gt',
    'GreaterThanOrEqual': 'gte',
    'LessThan': 'lt',
    'LessThanOrEqual': 'lte',
    'StringContains': 'icontains',
    'StringStartsWith': 'istartswith',
    'StringEndsWith': 'iendswith',
}

TRUE_VALUES = {'true', '1', 'yes', 'on'}
FALSE_VALUES = {'false', '0', 'no', 'off'}


def coerce_bool(value, default=False):
    if value is None or value == '':
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    return default


def resolve_column(table, name):
    """Case-insensitive column lookup"""
    field = table.columns().get(str(name or '').lower())
    if field is None:
        raise BadRequest(f"Unknown column: {name}")
    return field


def build_filters(table, filters):
    """
    AND together [{name, op, value}, ...]. Unknown operators are skipped,
    unknown columns are a 400.
    """
    if not filters:
        return Q()
    if not isinstance(filters, list):
        raise BadRequest('Filters must be a list')

    condition = Q()
    for item in filters:
        if not isinstance(item, dict):
            raise BadRequest('Each filter needs name, op and value')
        field = resolve_column(table, item.get('name'))
        attname = field.attname
        lookup = OPERATORS.get(item.get('op'))
        if lookup is None:
            logger.debug(f"Ignoring unsupported filter operator {item.get('op')!r} on {table.name}")
            continue

        value = item.get('value')
        if isinstance(field, BooleanField):
            value = coerce_bool(value)
        if value is None and lookup == 'exact':
            condition &= Q(**{f"{attname}__isnull": True})
            continue
        condition &= Q(**{f"{attname}__{lookup}": value})
    return condition


def apply_filters(queryset, table, filters):
    condition = build_filters(table, filters)
    try:
        # Values are converted when the lookup is built
        return queryset.filter(condition)
    except (ValueError, TypeError, DjangoValidationError) as e:
        raise BadRequest(f"Invalid filter value: {e}")
