from rest_framework import serializers
from django.db import transaction
from decimal import Decimal
from backend.core.models import User
from backend.inventory.services import reduce_stock, stock_shortfall
from backend.parties.models import Agent
from .composition import (
    distinct_values, is_valid_product, merge_size_breakdown, order_totals,
    payment_status, product_quantity, validate_size_breakdown,
)
from .models import Order, OrderItem
import logging

logger = logging.getLogger(__name__)


def validate_order_dates(delivery_date, event_date):
    if delivery_date and event_date and delivery_date >= event_date:
        raise serializers.ValidationError({'delivery_date': 'Delivery date must be before event date'})


def validate_payment(total_amount, paid_amount):
    if paid_amount is not None and paid_amount < 0:
        raise serializers.ValidationError({'paid_amount': 'Paid amount cannot be negative'})
    if total_amount is not None and paid_amount is not None and paid_amount > total_amount:
        raise serializers.ValidationError({'paid_amount': 'Paid amount cannot exceed total amount'})


def stock_shortage_message(product_type, color, size, missing):
    return f"Insufficient stock for {product_type} {color} {size}: short by {missing}"


def agent_user(context):
    """The requesting user unless it is a manager (or there is no request)"""
    request = context.get('request')
    if request is None or not request.user.is_authenticated or request.user.is_manager:
        return None
    return request.user


class OrderItemSerializer(serializers.ModelSerializer):
    order_id = serializers.PrimaryKeyRelatedField(source='order', queryset=Order.objects.all())

    class Meta:
        model = OrderItem
        fields = ['id', 'order_id', 'product_type', 'neck_type', 'color', 'size', 'quantity', 'unit_price', 'line_total']
        read_only_fields = ['line_total']

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        user = agent_user(self.context)
        if user is not None:
            self.fields['order_id'].queryset = Order.objects.visible_to(user)

    def validate_quantity(self, value):
        if value <= 0:
            raise serializers.ValidationError('Quantity must be greater than 0')
        return value

    def validate_unit_price(self, value):
        if value < 0:
            raise serializers.ValidationError('Unit price cannot be negative')
        return value


class OrderSerializer(serializers.ModelSerializer):
    """Flat order row, as stored in the orders table"""
    order_number = serializers.CharField(max_length=50, required=False)
    agent_id = serializers.PrimaryKeyRelatedField(
        source='agent', queryset=Agent.objects.all(), allow_null=True, required=False,
    )
    created_by = serializers.PrimaryKeyRelatedField(queryset=User.objects.all(), allow_null=True, required=False)
    pending_amount = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    agent_name = serializers.CharField(source='agent.full_name', read_only=True, allow_null=True)

    class Meta:
        model = Order
        fields = ['id', 'order_number', 'agent_id', 'agent_name', 'created_by', 'customer_name', 'customer_phone',
                  'customer_whatsapp', 'customer_address', 'product_type', 'product_color', 'neck_type',
                  'total_quantity', 'size_breakdown', 'special_instructions', 'file_upload', 'event_date',
                  'delivery_date', 'order_status', 'total_amount', 'paid_amount', 'pending_amount',
                  'payment_status', 'order_type', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        # Agents may only attribute orders to themselves
        user = agent_user(self.context)
        if user is not None:
            self.fields['agent_id'].queryset = Agent.objects.filter(user=user)
            self.fields['created_by'].queryset = User.objects.filter(pk=user.pk)

    def validate_size_breakdown(self, value):
        if value in (None, ''):
            return {}
        if not isinstance(value, dict):
            raise serializers.ValidationError('Size breakdown must be an object of size: quantity')
        return value

    def validate(self, attrs):
        instance = self.instance

        def current(field):
            if field in attrs:
                return attrs[field]
            return getattr(instance, field, None)

        validate_order_dates(current('delivery_date'), current('event_date'))
        validate_payment(current('total_amount'), current('paid_amount'))

        total_quantity = current('total_quantity')
        breakdown = attrs.get('size_breakdown')
        if breakdown and total_quantity is not None:
            errors = validate_size_breakdown(breakdown, total_quantity)
            if errors:
                raise serializers.ValidationError({'size_breakdown': list(errors.values())})

        # Payment status follows the amounts unless set explicitly
        if 'payment_status' not in attrs and ('paid_amount' in attrs or 'total_amount' in attrs):
            attrs['payment_status'] = payment_status(current('total_amount'), current('paid_amount'))
        return attrs

    def create(self, validated_data):
        request = self.context.get('request')
        if 'created_by' not in validated_data and request is not None and request.user.is_authenticated:
            validated_data['created_by'] = request.user
        return super().create(validated_data)


class OrderDetailSerializer(OrderSerializer):
    items = OrderItemSerializer(many=True, read_only=True)

    class Meta(OrderSerializer.Meta):
        fields = OrderSerializer.Meta.fields + ['items']


class OrderUpdateSerializer(serializers.ModelSerializer):
    """Fields a manager may change after an order is placed"""

    class Meta:
        model = Order
        fields = ['order_status', 'payment_status', 'paid_amount', 'delivery_date', 'event_date', 'special_instructions']

    def validate(self, attrs):
        order = self.instance
        validate_order_dates(attrs.get('delivery_date', order.delivery_date), attrs.get('event_date', order.event_date))
        validate_payment(order.total_amount, attrs.get('paid_amount', order.paid_amount))
        if 'paid_amount' in attrs and 'payment_status' not in attrs:
            attrs['payment_status'] = payment_status(order.total_amount, attrs['paid_amount'])
        return attrs


class OrderStatusSerializer(serializers.Serializer):
    order_status = serializers.ChoiceField(choices=Order.STATUS_CHOICES)


# Composite order payload

class AddressSerializer(serializers.Serializer):
    street = serializers.CharField(max_length=255)
    city = serializers.CharField(max_length=100)
    state = serializers.CharField(max_length=100)
    zipCode = serializers.CharField(max_length=20)


class CustomerSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    phone = serializers.CharField(max_length=30)
    whatsapp = serializers.CharField(max_length=30)
    address = AddressSerializer()


class VariantSerializer(serializers.Serializer):
    size = serializers.CharField(max_length=10, allow_blank=True)
    color = serializers.CharField(max_length=50, allow_blank=True)
    quantity = serializers.IntegerField(min_value=0)


class ProductLineSerializer(serializers.Serializer):
    product_type = serializers.CharField(max_length=100, allow_blank=True)
    neck_type = serializers.CharField(max_length=50, required=False, allow_blank=True, default='')
    unit_price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0'), required=False, default=Decimal('0.00'))
    variants = serializers.ListField(child=VariantSerializer(), allow_empty=False)

    def validate(self, attrs):
        if not is_valid_product(attrs):
            raise serializers.ValidationError(
                'Each product needs a product type and at least one variant with size, color and quantity'
            )
        # Incomplete rows left over from the form are dropped
        attrs['variants'] = [v for v in attrs['variants'] if v['size'] and v['color'] and v['quantity'] > 0]
        return attrs


class OrderCreateSerializer(serializers.Serializer):
    """
    Multi-product order as submitted by the order form. Quantities, the size
    breakdown and (unless given) the total amount are derived from the
    products.
    """
    customer = CustomerSerializer()
    products = ProductLineSerializer(many=True, allow_empty=False)
    event_date = serializers.DateField()
    delivery_date = serializers.DateField()
    total_amount = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)
    paid_amount = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, default=Decimal('0.00'))
    order_type = serializers.ChoiceField(choices=Order.ORDER_TYPE_CHOICES, default=Order.TYPE_CUSTOM)
    special_instructions = serializers.CharField(required=False, allow_blank=True, default='')
    file_upload = serializers.CharField(required=False, allow_blank=True, default='', max_length=500)
    agent_id = serializers.PrimaryKeyRelatedField(queryset=Agent.objects.all(), required=False, allow_null=True)

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        user = agent_user(self.context)
        if user is not None:
            self.fields['agent_id'].queryset = Agent.objects.filter(user=user)

    def validate(self, attrs):
        validate_order_dates(attrs['delivery_date'], attrs['event_date'])

        totals = order_totals(attrs['products'])
        if totals['total_quantity'] <= 0:
            raise serializers.ValidationError({'products': 'Total quantity must be greater than 0'})

        total_amount = attrs.get('total_amount')
        if total_amount is None:
            total_amount = totals['total_amount']
        if total_amount <= 0:
            raise serializers.ValidationError({'total_amount': 'Payment amount must be greater than 0'})
        validate_payment(total_amount, attrs['paid_amount'])

        attrs['total_amount'] = total_amount
        attrs['total_quantity'] = totals['total_quantity']

        if attrs['order_type'] == Order.TYPE_FROM_STOCK:
            shortages = self._stock_shortages(attrs['products'])
            if shortages:
                raise serializers.ValidationError({'products': shortages})
        return attrs

    def _stock_shortages(self, products):
        # Lines asking for the same type, color and size draw on the same rows
        demand = {}
        labels = {}
        for product in products:
            neck = (product['neck_type'] or '').lower()
            for variant in product['variants']:
                label = (product['product_type'], variant['color'], variant['size'])
                key = tuple(value.lower() for value in label)
                labels.setdefault(key, label)
                necks = demand.setdefault(key, {})
                necks[neck] = necks.get(neck, 0) + variant['quantity']

        shortages = []
        for key, necks in demand.items():
            missing = stock_shortfall(*labels[key], necks)
            if missing:
                shortages.append(stock_shortage_message(*labels[key], missing))
        return shortages

    def _resolve_agent(self, agent):
        if agent is not None:
            return agent
        request = self.context.get('request')
        if request is None:
            return None
        return Agent.objects.filter(user=request.user).first()

    @transaction.atomic
    def create(self, validated_data):
        request = self.context.get('request')
        user = request.user if request is not None else None
        products = validated_data['products']
        customer = validated_data['customer']
        address = customer['address']

        product_types = [p['product_type'] for p in products]
        colors = distinct_values(products, 'color')
        neck_types = [p['neck_type'] for p in products if p['neck_type']]

        order = Order.objects.create(
            agent=self._resolve_agent(validated_data.get('agent_id')),
            created_by=user,
            customer_name=customer['name'].strip(),
            customer_phone=customer['phone'],
            customer_whatsapp=customer['whatsapp'],
            customer_address=f"{address['street']}, {address['city']}, {address['state']} {address['zipCode']}",
            product_type=product_types[0] if len(set(product_types)) == 1 else 'Multiple Products',
            product_color=colors[0] if len(colors) == 1 else 'Multiple',
            neck_type=neck_types[0] if len(set(neck_types)) == 1 else ('Multiple' if neck_types else ''),
            total_quantity=validated_data['total_quantity'],
            size_breakdown=merge_size_breakdown(products),
            special_instructions=validated_data['special_instructions'],
            file_upload=validated_data['file_upload'],
            event_date=validated_data['event_date'],
            delivery_date=validated_data['delivery_date'],
            total_amount=validated_data['total_amount'],
            paid_amount=validated_data['paid_amount'],
            payment_status=payment_status(validated_data['total_amount'], validated_data['paid_amount']),
            order_type=validated_data['order_type'],
        )

        for product in products:
            for variant in product['variants']:
                OrderItem.objects.create(
                    order=order,
                    product_type=product['product_type'],
                    neck_type=product['neck_type'],
                    color=variant['color'],
                    size=variant['size'],
                    quantity=variant['quantity'],
                    unit_price=product['unit_price'],
                )

        if order.order_type in (Order.TYPE_FROM_STOCK, Order.TYPE_MIXED):
            # Neck-specific lines first, so any-neck lines take what is left
            for product in sorted(products, key=lambda p: not p['neck_type']):
                for variant in product['variants']:
                    deducted = reduce_stock(
                        product['product_type'], variant['color'], variant['size'], variant['quantity'],
                        neck_type=product['neck_type'] or None, order=order, user=user,
                    )
                    if deducted < variant['quantity'] and order.order_type == Order.TYPE_FROM_STOCK:
                        raise serializers.ValidationError({'products': [stock_shortage_message(
                            product['product_type'], variant['color'], variant['size'],
                            variant['quantity'] - deducted,
                        )]})

        logger.info(
            f"Order {order.order_number} created: {len(products)} product(s), "
            f"{sum(product_quantity(p) for p in products)} pcs, {order.total_amount}"
        )
        return order
