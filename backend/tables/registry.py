"""
Numeric table IDs used by the frontend's generic table client.

Each entry maps an ID to the model and serializer that back it, plus whether
writes are limited to managers and how reads are scoped per user.
"""
from backend.catalog.models import ProductConfig
from backend.catalog.serializers import ProductConfigSerializer
from backend.core.exceptions import BadRequest
from backend.inventory.models import StockItem
from backend.inventory.serializers import StockItemSerializer
from backend.orders.models import Order, OrderItem
from backend.orders.serializers import OrderSerializer, OrderItemSerializer
from backend.parties.models import Agent
from backend.parties.serializers import AgentSerializer


class TableEntry:
    def __init__(self, table_id, model, serializer_class, manager_writes=False, scope=None):
        self.table_id = table_id
        self.model = model
        self.serializer_class = serializer_class
        self.manager_writes = manager_writes
        self.scope = scope

    @property
    def name(self):
        return self.model._meta.db_table

    def queryset(self, user):
        queryset = self.model.objects.all()
        if self.scope is not None and not user.is_manager:
            queryset = self.scope(queryset, user)
        return queryset

    def columns(self):
        """Lower-cased column name -> model field"""
        return {
            field.column.lower(): field
            for field in self.model._meta.concrete_fields
        }


def _own_orders(queryset, user):
    return queryset.visible_to(user)


def _own_order_items(queryset, user):
    return queryset.filter(order__in=Order.objects.visible_to(user))


TABLES = {
    entry.table_id: entry for entry in (
        TableEntry(11424, Agent, AgentSerializer, manager_writes=True),
        TableEntry(11425, Order, OrderSerializer, scope=_own_orders),
        TableEntry(11426, StockItem, StockItemSerializer, manager_writes=True),
        TableEntry(11428, ProductConfig, ProductConfigSerializer, manager_writes=True),
        TableEntry(17047, OrderItem, OrderItemSerializer, scope=_own_order_items),
    )
}


def get_table(table_id):
    try:
        return TABLES[int(table_id)]
    except (KeyError, TypeError, ValueError):
        raise BadRequest('Invalid table ID')
