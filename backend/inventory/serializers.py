from rest_framework import serializers
from .models import StockItem, StockMovement
from .services import record_movement


class StockItemSerializer(serializers.ModelSerializer):
    is_low = serializers.BooleanField(read_only=True)

    class Meta:
        model = StockItem
        fields = ['id', 'product_type', 'color', 'neck_type', 'size', 'quantity', 'min_threshold',
                  'cost_per_unit', 'selling_price', 'batch_number', 'supplier', 'purchase_date',
                  'is_low', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def validate_quantity(self, value):
        if value < 0:
            raise serializers.ValidationError('Quantity cannot be negative')
        return value

    def validate_min_threshold(self, value):
        if value < 0:
            raise serializers.ValidationError('Minimum threshold cannot be negative')
        return value

    def validate(self, attrs):
        for field in ('product_type', 'color', 'size'):
            if field in attrs:
                attrs[field] = attrs[field].strip()
                if not attrs[field]:
                    raise serializers.ValidationError({field: 'This field may not be blank.'})
        if 'neck_type' in attrs:
            attrs['neck_type'] = (attrs['neck_type'] or '').strip()
        return attrs

    def create(self, validated_data):
        item = super().create(validated_data)
        if item.quantity > 0:
            request = self.context.get('request')
            record_movement(
                item, StockMovement.TYPE_IN, item.quantity, 'New stock addition',
                user=getattr(request, 'user', None),
            )
        return item


class StockMovementSerializer(serializers.ModelSerializer):
    stock_item_label = serializers.StringRelatedField(source='stock_item')
    order_number = serializers.CharField(source='order.order_number', read_only=True, allow_null=True)

    class Meta:
        model = StockMovement
        fields = ['id', 'stock_item', 'stock_item_label', 'movement_type', 'quantity', 'reason',
                  'order', 'order_number', 'user', 'created_at']


class StockAvailabilitySerializer(serializers.Serializer):
    product_type = serializers.CharField()
    color = serializers.CharField()
    neck_type = serializers.CharField(required=False, allow_blank=True, default='')
    size_breakdown = serializers.DictField(child=serializers.IntegerField(min_value=0))


class StockAdjustSerializer(serializers.Serializer):
    stock_item_id = serializers.PrimaryKeyRelatedField(queryset=StockItem.objects.all(), source='stock_item')
    operation = serializers.ChoiceField(choices=['increase', 'reduce'])
    quantity = serializers.IntegerField(min_value=1)
    reason = serializers.CharField(required=False, allow_blank=True, default='', max_length=255)
